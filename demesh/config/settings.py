"""
Configuration record for the demesh pipeline.

This module provides typed configuration classes for the four blocks of a
demesh input document (data, jigsaw, extrusion, output), with conversion to
and from plain dictionaries, YAML and JSON.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, Union
import json
import logging

import yaml

from demesh.config.coercion import INT32_MAX, parse_integer, parse_layer_count, parse_real
from demesh.config.registry import ParameterRegistry
from demesh.errors import (
    DocumentSyntaxError,
    FileOpenError,
    IllegalNestedMappingError,
    IllegalSequenceContextError,
    InvalidParameterNameError,
    InvalidParameterValueError,
)

logger = logging.getLogger(__name__)


class MeshFormat(Enum):
    """File formats for mesh output."""
    EXODUS = "exodus"
    HDF5 = "hdf5"

    @classmethod
    def from_string(cls, value: str) -> "MeshFormat":
        """Look up a format by its document spelling."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise InvalidParameterValueError(
                f"Invalid mesh format '{value}' (expected one of: {valid})"
            ) from None


@dataclass
class DataConfig:
    """
    Input sample files.

    Attributes:
        dem: Elevation samples (required)
        lat: Latitude samples, degrees
        lon: Longitude samples, degrees
        mask: Optional 0/1 validity flags
    """
    dem: Optional[str] = None
    lat: Optional[str] = None
    lon: Optional[str] = None
    mask: Optional[str] = None


# Integer and real knobs accepted by the triangulation engine.
INTEGER_OPTIONS = (
    "verbosity", "geom_seed", "geom_feat", "hfun_scal", "bnds_kern",
    "mesh_dims", "mesh_kern", "mesh_iter", "mesh_top1", "mesh_top2",
    "optm_kern", "optm_iter", "optm_tria", "optm_dual", "optm_zip", "optm_div",
)
REAL_OPTIONS = (
    "geom_eta1", "geom_eta2", "init_near", "hfun_hmax", "hfun_hmin",
    "mesh_rad2", "mesh_rad3", "mesh_siz1", "mesh_siz2", "mesh_siz3",
    "mesh_off2", "mesh_off3", "mesh_snk2", "mesh_snk3", "mesh_eps1",
    "mesh_eps2", "mesh_vol3", "optm_qtol", "optm_qlim",
)

# Block and parameter names of the input document.
DATA_BLOCK = "data"
JIGSAW_BLOCK = "jigsaw"
EXTRUSION_BLOCK = "extrusion"
OUTPUT_BLOCK = "output"
BLOCK_NAMES = (DATA_BLOCK, JIGSAW_BLOCK, EXTRUSION_BLOCK, OUTPUT_BLOCK)

DATA_PARAMS = ("dem", "lat", "lon", "mask")
JIGSAW_PARAMS = INTEGER_OPTIONS + REAL_OPTIONS
EXTRUSION_PARAMS = ("layers", "thickness", "thicknesses")
OUTPUT_PARAMS = ("surface_mesh", "column_mesh")
MESH_OUTPUT_PARAMS = ("format", "filename")


def new_registries() -> Dict[str, ParameterRegistry]:
    """Fresh name registries for every block scope of one document."""
    return {
        DATA_BLOCK: ParameterRegistry(DATA_BLOCK, DATA_PARAMS),
        # Unknown engine knobs are tolerated so newer documents still load.
        JIGSAW_BLOCK: ParameterRegistry(JIGSAW_BLOCK, JIGSAW_PARAMS, strict=False),
        EXTRUSION_BLOCK: ParameterRegistry(EXTRUSION_BLOCK, EXTRUSION_PARAMS),
        OUTPUT_BLOCK: ParameterRegistry(OUTPUT_BLOCK, OUTPUT_PARAMS),
        "surface_mesh": ParameterRegistry("surface_mesh", MESH_OUTPUT_PARAMS),
        "column_mesh": ParameterRegistry("column_mesh", MESH_OUTPUT_PARAMS),
    }


def coerce_engine_option(name: str, text: str) -> Optional[Union[int, float]]:
    """
    Convert the text of an engine knob to its declared type.

    Returns None (after logging a warning) for names the engine does not know.
    """
    if name in INTEGER_OPTIONS:
        return parse_integer(text)
    if name in REAL_OPTIONS:
        return parse_real(text)
    logger.warning("Ignoring unknown parameter in %s block: '%s'", JIGSAW_BLOCK, name)
    return None


# Values the engine uses for any knob left unset.
ENGINE_DEFAULTS: Dict[str, Union[int, float]] = {
    "verbosity": 0,
    "geom_seed": 8,
    "geom_feat": 0,
    "geom_eta1": 45.0,
    "geom_eta2": 45.0,
    "init_near": 1.0e-8,
    "hfun_scal": 0,
    "hfun_hmax": 0.02,
    "hfun_hmin": 0.0,
    "bnds_kern": 0,
    "mesh_dims": 2,
    "mesh_kern": 0,
    "mesh_iter": INT32_MAX,
    "mesh_top1": 0,
    "mesh_top2": 0,
    "mesh_rad2": 1.05,
    "mesh_rad3": 2.05,
    "mesh_siz1": 1.333,
    "mesh_siz2": 1.3,
    "mesh_siz3": 1.3,
    "mesh_off2": 0.9,
    "mesh_off3": 1.1,
    "mesh_snk2": 0.2,
    "mesh_snk3": 0.33,
    "mesh_eps1": 0.33,
    "mesh_eps2": 0.33,
    "mesh_vol3": 0.0,
    "optm_kern": 0,
    "optm_iter": 16,
    "optm_qtol": 1.0e-4,
    "optm_qlim": 0.9333,
    "optm_tria": 1,
    "optm_dual": 0,
    "optm_zip": 1,
    "optm_div": 1,
}


@dataclass
class TriangulationOptions:
    """
    Triangulation engine settings (the ``jigsaw`` block).

    Every knob is optional; None means the engine default from
    ENGINE_DEFAULTS applies.
    """
    verbosity: Optional[int] = None
    geom_seed: Optional[int] = None
    geom_feat: Optional[int] = None
    geom_eta1: Optional[float] = None
    geom_eta2: Optional[float] = None
    init_near: Optional[float] = None
    hfun_scal: Optional[int] = None
    hfun_hmax: Optional[float] = None
    hfun_hmin: Optional[float] = None
    bnds_kern: Optional[int] = None
    mesh_dims: Optional[int] = None
    mesh_kern: Optional[int] = None
    mesh_iter: Optional[int] = None
    mesh_top1: Optional[int] = None
    mesh_top2: Optional[int] = None
    mesh_rad2: Optional[float] = None
    mesh_rad3: Optional[float] = None
    mesh_siz1: Optional[float] = None
    mesh_siz2: Optional[float] = None
    mesh_siz3: Optional[float] = None
    mesh_off2: Optional[float] = None
    mesh_off3: Optional[float] = None
    mesh_snk2: Optional[float] = None
    mesh_snk3: Optional[float] = None
    mesh_eps1: Optional[float] = None
    mesh_eps2: Optional[float] = None
    mesh_vol3: Optional[float] = None
    optm_kern: Optional[int] = None
    optm_iter: Optional[int] = None
    optm_qtol: Optional[float] = None
    optm_qlim: Optional[float] = None
    optm_tria: Optional[int] = None
    optm_dual: Optional[int] = None
    optm_zip: Optional[int] = None
    optm_div: Optional[int] = None

    def explicit(self) -> Dict[str, Union[int, float]]:
        """Knobs that were set explicitly."""
        return {f.name: getattr(self, f.name) for f in fields(self)
                if getattr(self, f.name) is not None}

    def resolved(self) -> Dict[str, Union[int, float]]:
        """All knobs, with engine defaults filled in."""
        values = dict(ENGINE_DEFAULTS)
        values.update(self.explicit())
        return values


@dataclass
class ExtrusionConfig:
    """
    Column extrusion settings.

    Attributes:
        num_layers: Number of prism layers per column
        total_layer_thickness: Thickness of the whole column, split evenly
        layer_thicknesses: Explicit per-layer thicknesses, top to bottom
    """
    num_layers: int = 1
    total_layer_thickness: Optional[float] = None
    layer_thicknesses: List[float] = field(default_factory=list)


@dataclass
class MeshOutput:
    """Where and how to write one mesh."""
    format: MeshFormat = MeshFormat.EXODUS
    filename: Optional[str] = None


@dataclass
class OutputConfig:
    surface_mesh: MeshOutput = field(default_factory=MeshOutput)
    column_mesh: MeshOutput = field(default_factory=MeshOutput)


@dataclass
class DemeshConfig:
    """
    Main demesh configuration.

    This is the top-level record populated by the configuration parser and
    handed to the point extraction, triangulation and extrusion stages.

    Attributes:
        data: Input sample files
        jigsaw: Triangulation engine options
        extrusion: Column extrusion settings
        output: Mesh output descriptors
    """
    data: DataConfig = field(default_factory=DataConfig)
    jigsaw: TriangulationOptions = field(default_factory=TriangulationOptions)
    extrusion: ExtrusionConfig = field(default_factory=ExtrusionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> dict:
        """Convert to a dictionary keyed like the input document."""
        data = {k: v for k, v in vars(self.data).items() if v is not None}

        extrusion: Dict[str, Any] = {"layers": self.extrusion.num_layers}
        if self.extrusion.total_layer_thickness is not None:
            extrusion["thickness"] = self.extrusion.total_layer_thickness
        if self.extrusion.layer_thicknesses:
            extrusion["thicknesses"] = list(self.extrusion.layer_thicknesses)

        def convert_output(out: MeshOutput) -> dict:
            result = {"format": out.format.value}
            if out.filename is not None:
                result["filename"] = out.filename
            return result

        return {
            "data": data,
            "jigsaw": self.jigsaw.explicit(),
            "extrusion": extrusion,
            "output": {
                "surface_mesh": convert_output(self.output.surface_mesh),
                "column_mesh": convert_output(self.output.column_mesh),
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DemeshConfig":
        """
        Create from a dictionary keyed like the input document.

        Values go through the same name and number checks as a YAML
        document. Numbers may be given as numbers or as strings; None leaves
        a parameter unset.

        Raises:
            DemeshError: If a block, name or value is invalid
        """
        config = cls()
        registries = new_registries()
        for block, values in _mapping("root", data):
            if block not in BLOCK_NAMES:
                raise InvalidParameterNameError("root", block)
            _DICT_LOADERS[block](config, registries, _mapping(block, values))
        return config

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DemeshConfig":
        """Load configuration from a YAML file with full validation."""
        from demesh.config.parser import read_config
        return read_config(path)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "DemeshConfig":
        """Load configuration from a JSON file with full validation."""
        path = Path(path)
        try:
            with open(path, 'rb') as f:
                raw = f.read()
        except OSError as e:
            raise FileOpenError(path, e.strerror) from e
        try:
            data = json.loads(raw, object_pairs_hook=_ObjectPairs)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise DocumentSyntaxError(f"Invalid JSON in '{path}': {e}") from e
        return cls.from_dict(data)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_json(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file."""
        path = Path(path)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class _ObjectPairs(tuple):
    """Key/value pairs of a JSON object, in document order, duplicates kept."""


def _mapping(block: str, value) -> list:
    """Key/value pairs of a block, or an error if it is not a mapping."""
    if isinstance(value, _ObjectPairs):
        return list(value)
    if isinstance(value, dict):
        return list(value.items())
    if isinstance(value, list):
        raise IllegalSequenceContextError(block)
    raise InvalidParameterValueError(f"Block {block} must be a mapping, got '{value}'")


def _scalar(block: str, name: str, value) -> str:
    """Text of a parameter value, as a YAML scalar would carry it."""
    if isinstance(value, (dict, _ObjectPairs)):
        raise IllegalNestedMappingError(name)
    if isinstance(value, list):
        raise IllegalSequenceContextError(block)
    if isinstance(value, MeshFormat):
        return value.value
    return str(value)


def _load_data(config: DemeshConfig, registries: Dict[str, ParameterRegistry], pairs: list) -> None:
    for name, value in pairs:
        registries[DATA_BLOCK].check(name)
        if value is not None:
            setattr(config.data, name, _scalar(DATA_BLOCK, name, value))


def _load_jigsaw(config: DemeshConfig, registries: Dict[str, ParameterRegistry], pairs: list) -> None:
    for name, value in pairs:
        registries[JIGSAW_BLOCK].check(name)
        if value is None:
            continue
        option = coerce_engine_option(name, _scalar(JIGSAW_BLOCK, name, value))
        if option is not None:
            setattr(config.jigsaw, name, option)


def _load_extrusion(config: DemeshConfig, registries: Dict[str, ParameterRegistry], pairs: list) -> None:
    extrusion = config.extrusion
    for name, value in pairs:
        registries[EXTRUSION_BLOCK].check(name)
        if value is None:
            continue
        if name == "layers":
            extrusion.num_layers = parse_layer_count(_scalar(EXTRUSION_BLOCK, name, value))
        elif name == "thickness":
            extrusion.total_layer_thickness = parse_real(_scalar(EXTRUSION_BLOCK, name, value))
        elif isinstance(value, list):
            extrusion.layer_thicknesses = [
                parse_real(_scalar(EXTRUSION_BLOCK, name, item)) for item in value
            ]
        else:
            extrusion.layer_thicknesses = [parse_real(_scalar(EXTRUSION_BLOCK, name, value))]


def _load_output(config: DemeshConfig, registries: Dict[str, ParameterRegistry], pairs: list) -> None:
    for target, values in pairs:
        registries[OUTPUT_BLOCK].check(target)
        if isinstance(values, list):
            raise IllegalSequenceContextError(OUTPUT_BLOCK)
        if not isinstance(values, (dict, _ObjectPairs)):
            raise InvalidParameterValueError(
                f"Parameter {target} in {OUTPUT_BLOCK} block must be a mapping, got '{values}'"
            )
        out = getattr(config.output, target)
        for name, value in _mapping(target, values):
            registries[target].check(name)
            if value is None:
                continue
            if name == "format":
                out.format = MeshFormat.from_string(_scalar(target, name, value))
            else:
                out.filename = _scalar(target, name, value)


_DICT_LOADERS = {
    DATA_BLOCK: _load_data,
    JIGSAW_BLOCK: _load_jigsaw,
    EXTRUSION_BLOCK: _load_extrusion,
    OUTPUT_BLOCK: _load_output,
}


def load_config(path: Union[str, Path]) -> DemeshConfig:
    """
    Load configuration from file.

    Supports YAML and JSON files based on extension; anything else is read
    as YAML.

    Args:
        path: Path to configuration file

    Returns:
        DemeshConfig instance
    """
    path = Path(path)
    if path.suffix.lower() == '.json':
        return DemeshConfig.from_json(path)
    return DemeshConfig.from_yaml(path)
