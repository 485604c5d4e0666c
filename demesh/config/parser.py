"""
Event-driven reader for demesh configuration documents.

The document is consumed as a flat stream of PyYAML structural events
(scalar, mapping start/end, sequence start/end) by an explicit state
machine. Parsing stops at the first invalid event; values already stored in
the configuration record are left in place.

Document layout:

    data:      { dem, lat, lon, mask }
    jigsaw:    { <triangulation engine knobs> }
    extrusion: { layers, thickness, thicknesses: [ ... ] }
    output:
      surface_mesh: { format: exodus|hdf5, filename }
      column_mesh:  { format: exodus|hdf5, filename }
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Union
import logging

import yaml

from demesh.config.coercion import parse_layer_count, parse_real
from demesh.config.registry import ParameterRegistry
from demesh.config.settings import (
    DemeshConfig,
    MeshFormat,
    BLOCK_NAMES,
    DATA_BLOCK,
    JIGSAW_BLOCK,
    EXTRUSION_BLOCK,
    OUTPUT_BLOCK,
    coerce_engine_option,
    new_registries,
)
from demesh.errors import (
    DocumentSyntaxError,
    FileOpenError,
    IllegalNestedMappingError,
    IllegalSequenceContextError,
    InvalidParameterNameError,
    InvalidParameterValueError,
)

logger = logging.getLogger(__name__)


@dataclass
class ParserState:
    """
    Transient state for one parse call.

    Attributes:
        block: Name of the open top-level block, or None at the root
        output_target: Open output sub-block (surface_mesh/column_mesh), if any
        parsing_thicknesses: True while consuming the thicknesses sequence
        current_param: Pending parameter name; empty when the next scalar is
            expected to be a name
        registries: Accepted parameter names per block scope
    """
    block: Optional[str] = None
    output_target: Optional[str] = None
    parsing_thicknesses: bool = False
    current_param: str = ""
    registries: Dict[str, ParameterRegistry] = field(default_factory=new_registries)

    def close_blocks(self) -> None:
        """Leave whatever block is open and return to the root."""
        self.block = None
        self.output_target = None
        self.parsing_thicknesses = False
        self.current_param = ""


def _handle_root_scalar(state: ParserState, value: str) -> None:
    if value not in BLOCK_NAMES:
        raise InvalidParameterNameError("root", value)
    logger.debug("Entering %s block", value)
    state.block = value


def _parse_data_param(state: ParserState, value: str, config: DemeshConfig) -> None:
    setattr(config.data, state.current_param, value)
    state.current_param = ""


def _parse_jigsaw_param(state: ParserState, value: str, config: DemeshConfig) -> None:
    name = state.current_param
    option = coerce_engine_option(name, value)
    if option is not None:
        setattr(config.jigsaw, name, option)
    state.current_param = ""


def _parse_extrusion_param(state: ParserState, value: str, config: DemeshConfig) -> None:
    name = state.current_param
    if state.parsing_thicknesses:
        # Items keep the pending name until the sequence ends.
        config.extrusion.layer_thicknesses.append(parse_real(value))
        return
    if name == "layers":
        config.extrusion.num_layers = parse_layer_count(value)
    elif name == "thickness":
        config.extrusion.total_layer_thickness = parse_real(value)
    elif name == "thicknesses":
        # A single scalar is a one-layer thickness list.
        config.extrusion.layer_thicknesses = [parse_real(value)]
    state.current_param = ""


def _parse_output_param(state: ParserState, value: str, config: DemeshConfig) -> None:
    target = getattr(config.output, state.output_target)
    if state.current_param == "format":
        target.format = MeshFormat.from_string(value)
    else:
        target.filename = value
    state.current_param = ""


_VALUE_HANDLERS = {
    DATA_BLOCK: _parse_data_param,
    JIGSAW_BLOCK: _parse_jigsaw_param,
    EXTRUSION_BLOCK: _parse_extrusion_param,
    OUTPUT_BLOCK: _parse_output_param,
}


def _handle_scalar(state: ParserState, value: str, config: DemeshConfig) -> None:
    if state.block is None:
        _handle_root_scalar(state, value)
        return

    scope = state.output_target or state.block
    if not state.current_param:
        state.registries[scope].check(value)
        state.current_param = value
    elif state.block == OUTPUT_BLOCK and state.output_target is None:
        # surface_mesh/column_mesh take a mapping, never a scalar.
        raise InvalidParameterValueError(
            f"Parameter {state.current_param} in {OUTPUT_BLOCK} block "
            f"must be a mapping, got '{value}'"
        )
    else:
        logger.debug("%s.%s = %r", scope, state.current_param, value)
        _VALUE_HANDLERS[state.block](state, value, config)


def _handle_mapping_start(state: ParserState) -> None:
    if not state.current_param:
        return
    if state.block == OUTPUT_BLOCK and state.output_target is None:
        logger.debug("Entering %s.%s", OUTPUT_BLOCK, state.current_param)
        state.output_target = state.current_param
        state.current_param = ""
        return
    raise IllegalNestedMappingError(state.current_param)


def _handle_mapping_end(state: ParserState) -> None:
    if state.output_target is not None:
        state.output_target = None
        state.current_param = ""
        return
    state.close_blocks()


def _handle_sequence_start(state: ParserState, config: DemeshConfig) -> None:
    if (state.block == EXTRUSION_BLOCK and not state.parsing_thicknesses
            and state.current_param == "thicknesses"):
        state.parsing_thicknesses = True
        config.extrusion.layer_thicknesses = []
        return
    raise IllegalSequenceContextError(state.block or "root")


def _handle_sequence_end(state: ParserState) -> None:
    state.parsing_thicknesses = False
    state.current_param = ""


def handle_event(event: yaml.events.Event, state: ParserState, config: DemeshConfig) -> None:
    """
    Apply a single YAML event to the parser state and configuration.

    Args:
        event: PyYAML event
        state: Parser state for the current parse call
        config: Configuration record being populated

    Raises:
        DemeshError: If the event is not valid at this point in the document
    """
    if isinstance(event, yaml.ScalarEvent):
        _handle_scalar(state, event.value, config)
    elif isinstance(event, yaml.MappingStartEvent):
        _handle_mapping_start(state)
    elif isinstance(event, yaml.MappingEndEvent):
        _handle_mapping_end(state)
    elif isinstance(event, yaml.SequenceStartEvent):
        _handle_sequence_start(state, config)
    elif isinstance(event, yaml.SequenceEndEvent):
        _handle_sequence_end(state)
    elif isinstance(event, yaml.AliasEvent):
        raise DocumentSyntaxError(f"Aliases are not supported (*{event.anchor})")


def parse_events(
    events: Iterable[yaml.events.Event],
    config: Optional[DemeshConfig] = None,
) -> DemeshConfig:
    """
    Populate a configuration record from a stream of YAML events.

    Args:
        events: PyYAML events, in document order
        config: Record to populate (a new one is created if omitted)

    Returns:
        The populated configuration record

    Raises:
        DemeshError: At the first invalid event
    """
    if config is None:
        config = DemeshConfig()
    state = ParserState()
    try:
        for event in events:
            handle_event(event, state, config)
    except yaml.MarkedYAMLError as e:
        message = e.problem or str(e)
        if e.problem_mark is not None:
            message = (f"{message} (line {e.problem_mark.line + 1}, "
                       f"column {e.problem_mark.column + 1})")
        raise DocumentSyntaxError(message) from e
    except yaml.YAMLError as e:
        raise DocumentSyntaxError(str(e)) from e
    return config


def parse_config_string(text: str, config: Optional[DemeshConfig] = None) -> DemeshConfig:
    """Parse a configuration document held in a string."""
    return parse_events(yaml.parse(text, Loader=yaml.SafeLoader), config)


def read_config(path: Union[str, Path], config: Optional[DemeshConfig] = None) -> DemeshConfig:
    """
    Read and validate a configuration file.

    Args:
        path: Path to the YAML document
        config: Record to populate (a new one is created if omitted)

    Returns:
        The populated configuration record

    Raises:
        FileOpenError: If the file cannot be opened
        DemeshError: If the document is malformed or invalid
    """
    path = Path(path)
    try:
        f = open(path, 'rb')
    except OSError as e:
        raise FileOpenError(path, e.strerror) from e
    logger.info("Reading configuration from %s", path)
    with f:
        return parse_events(yaml.parse(f, Loader=yaml.SafeLoader), config)
