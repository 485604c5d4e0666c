"""
Tests for demesh.config module.

These tests verify value coercion, parameter-name bookkeeping and the
event-driven configuration parser.
"""

import pytest


FULL_DOCUMENT = """\
data:
  dem: elev.txt
  lat: lat.txt
  lon: lon.txt
  mask: mask.txt
jigsaw:
  verbosity: 1
  geom_seed: 12
  hfun_hmax: 0.05
  optm_qtol: 1.0e-5
extrusion:
  layers: 5
  thickness: 100.0
output:
  surface_mesh:
    format: hdf5
    filename: surface.h5
  column_mesh:
    format: exodus
    filename: columns.exo
"""


class TestCoercion:
    """Tests for strict numeric parsing."""

    def test_parse_integer(self):
        """Test valid integers, including surrounding whitespace."""
        from demesh.config.coercion import parse_integer

        assert parse_integer("42") == 42
        assert parse_integer("  -7 ") == -7
        assert parse_integer("+3") == 3

    @pytest.mark.parametrize("text", ["", "   ", "abc", "12abc", "1.5", "1_000", "0x10"])
    def test_parse_integer_rejects(self, text):
        """Test that malformed integers raise InvalidNumberError."""
        from demesh.config.coercion import parse_integer
        from demesh.errors import InvalidNumberError

        with pytest.raises(InvalidNumberError):
            parse_integer(text)

    def test_parse_integer_range(self):
        """Test that values outside 32 bits are rejected."""
        from demesh.config.coercion import parse_integer
        from demesh.errors import InvalidNumberError

        assert parse_integer("2147483647") == 2147483647
        with pytest.raises(InvalidNumberError):
            parse_integer("2147483648")

    def test_parse_real(self):
        """Test valid reals."""
        from demesh.config.coercion import parse_real

        assert parse_real("10") == 10.0
        assert parse_real(" 1.5e3 ") == 1500.0
        assert parse_real(".5") == 0.5
        assert parse_real("-2.") == -2.0

    @pytest.mark.parametrize("text", ["", "x", "1.0x", "1.0 2.0", "nan", "inf", "1e"])
    def test_parse_real_rejects(self, text):
        """Test that trailing garbage and non-finite values are rejected."""
        from demesh.config.coercion import parse_real
        from demesh.errors import InvalidNumberError

        with pytest.raises(InvalidNumberError):
            parse_real(text)


class TestParameterRegistry:
    """Tests for parameter-name validation."""

    def test_accepts_each_name_once(self):
        """Test that valid names are recorded."""
        from demesh.config.registry import ParameterRegistry

        registry = ParameterRegistry("data", ["dem", "lat"])
        registry.check("dem")
        registry.check("lat")

        assert "dem" in registry
        assert len(registry) == 2

    def test_duplicate(self):
        """Test that a repeated name raises DuplicateParameterError."""
        from demesh.config.registry import ParameterRegistry
        from demesh.errors import DuplicateParameterError

        registry = ParameterRegistry("data", ["dem"])
        registry.check("dem")
        with pytest.raises(DuplicateParameterError):
            registry.check("dem")

    def test_invalid_name_has_no_side_effect(self):
        """Test that a rejected name is not recorded."""
        from demesh.config.registry import check_parameter_name
        from demesh.errors import InvalidParameterNameError

        seen = set()
        with pytest.raises(InvalidParameterNameError) as excinfo:
            check_parameter_name("data", seen, ("dem",), "elevation")

        assert seen == set()
        assert "data" in str(excinfo.value)
        assert "'elevation'" in str(excinfo.value)

    def test_lenient_registry(self):
        """Test that a non-strict registry accepts unknown names once."""
        from demesh.config.registry import ParameterRegistry
        from demesh.errors import DuplicateParameterError

        registry = ParameterRegistry("jigsaw", ["verbosity"], strict=False)
        registry.check("future_knob")
        assert not registry.is_known("future_knob")
        with pytest.raises(DuplicateParameterError):
            registry.check("future_knob")


class TestParser:
    """Tests for the configuration parser."""

    def test_full_document(self):
        """Test that every block is populated."""
        from demesh.config.parser import parse_config_string
        from demesh.config.settings import MeshFormat

        config = parse_config_string(FULL_DOCUMENT)

        assert config.data.dem == "elev.txt"
        assert config.data.lat == "lat.txt"
        assert config.data.lon == "lon.txt"
        assert config.data.mask == "mask.txt"
        assert config.jigsaw.verbosity == 1
        assert config.jigsaw.geom_seed == 12
        assert config.jigsaw.hfun_hmax == 0.05
        assert config.jigsaw.optm_qtol == 1.0e-5
        assert config.jigsaw.mesh_dims is None
        assert config.extrusion.num_layers == 5
        assert config.extrusion.total_layer_thickness == 100.0
        assert config.output.surface_mesh.format == MeshFormat.HDF5
        assert config.output.surface_mesh.filename == "surface.h5"
        assert config.output.column_mesh.format == MeshFormat.EXODUS
        assert config.output.column_mesh.filename == "columns.exo"

    def test_extrusion_layers_and_thickness(self):
        """Test the extrusion block on its own, with no leakage elsewhere."""
        from demesh.config.parser import parse_config_string
        from demesh.config.settings import OutputConfig

        config = parse_config_string("extrusion: { layers: 5, thickness: 100.0 }")

        assert config.extrusion.num_layers == 5
        assert config.extrusion.total_layer_thickness == 100.0
        assert config.extrusion.layer_thicknesses == []
        assert config.output == OutputConfig()

    def test_thickness_sequence(self):
        """Test that the thicknesses sequence is read in order."""
        from demesh.config.parser import parse_config_string

        config = parse_config_string(
            "extrusion:\n"
            "  layers: 3\n"
            "  thicknesses: [10, 20.5, 30]\n"
            "output:\n"
            "  column_mesh:\n"
            "    filename: col.exo\n"
        )

        assert config.extrusion.layer_thicknesses == [10.0, 20.5, 30.0]
        assert config.output.column_mesh.filename == "col.exo"

    def test_equivalent_formatting(self):
        """Test that flow and block style documents give identical records."""
        from demesh.config.parser import parse_config_string

        flow = (
            "{data: {dem: elev.txt, lat: lat.txt, lon: lon.txt, mask: mask.txt}, "
            "jigsaw: {verbosity: 1, geom_seed: 12, hfun_hmax: 5.0e-2, optm_qtol: 0.00001}, "
            "extrusion: {layers: 5, thickness: 1.0e2}, "
            "output: {surface_mesh: {format: hdf5, filename: surface.h5}, "
            "column_mesh: {filename: columns.exo, format: exodus}}}"
        )

        assert parse_config_string(flow) == parse_config_string(FULL_DOCUMENT)

    def test_duplicate_parameter(self):
        """Test that a repeated key fails and keeps the first value."""
        from demesh.config.parser import parse_events
        from demesh.config.settings import DemeshConfig
        from demesh.errors import DuplicateParameterError, ErrorCode
        import yaml

        config = DemeshConfig()
        with pytest.raises(DuplicateParameterError) as excinfo:
            parse_events(yaml.parse("data:\n  dem: a.txt\n  dem: b.txt\n"), config)

        assert excinfo.value.code == ErrorCode.DUPLICATE_PARAMETER
        assert config.data.dem == "a.txt"

    @pytest.mark.parametrize("document", [
        "data:\n  elevation: a.txt\n",
        "extrusion:\n  depth: 3\n",
        "output:\n  volume_mesh:\n    format: hdf5\n",
        "output:\n  surface_mesh:\n    path: s.h5\n",
        "meshing:\n  layers: 2\n",
    ])
    def test_invalid_parameter_name(self, document):
        """Test that unknown keys outside the jigsaw block are rejected."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import InvalidParameterNameError

        with pytest.raises(InvalidParameterNameError):
            parse_config_string(document)

    def test_extra_top_level_key(self):
        """Test that an unknown block next to valid ones is rejected."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import InvalidParameterNameError, ErrorCode

        document = "version: 2\n" + FULL_DOCUMENT
        with pytest.raises(InvalidParameterNameError) as excinfo:
            parse_config_string(document)

        assert excinfo.value.block_name == "root"
        assert excinfo.value.param_name == "version"
        assert excinfo.value.code == ErrorCode.INVALID_PARAMETER_NAME

    def test_extra_top_level_key_after_blocks(self):
        """Test that values read before an unknown block are kept."""
        from demesh.config.parser import parse_events
        from demesh.config.settings import DemeshConfig
        from demesh.errors import InvalidParameterNameError
        import yaml

        config = DemeshConfig()
        with pytest.raises(InvalidParameterNameError) as excinfo:
            parse_events(yaml.parse(FULL_DOCUMENT + "comment: generated\n"), config)

        assert excinfo.value.param_name == "comment"
        assert config.output.column_mesh.filename == "columns.exo"

    def test_unknown_jigsaw_option_ignored(self):
        """Test that the engine block tolerates unknown knobs."""
        from demesh.config.parser import parse_config_string

        config = parse_config_string("jigsaw:\n  future_knob: 3\n  verbosity: 2\n")

        assert config.jigsaw.verbosity == 2
        assert config.jigsaw.explicit() == {"verbosity": 2}

    def test_jigsaw_duplicate(self):
        """Test that duplicates are still rejected in the engine block."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import DuplicateParameterError

        with pytest.raises(DuplicateParameterError):
            parse_config_string("jigsaw:\n  mesh_iter: 3\n  mesh_iter: 4\n")

    def test_illegal_nested_mapping(self):
        """Test that a mapping value names the pending parameter."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import IllegalNestedMappingError

        with pytest.raises(IllegalNestedMappingError) as excinfo:
            parse_config_string("data:\n  dem:\n    path: elev.txt\n")

        assert excinfo.value.param_name == "dem"
        assert "dem" in excinfo.value.message

    @pytest.mark.parametrize("document", [
        "data:\n  dem: [a.txt, b.txt]\n",
        "jigsaw:\n  verbosity: [1]\n",
        "extrusion:\n  layers: [1, 2]\n",
        "output:\n  surface_mesh: [hdf5]\n",
        "- data\n",
    ])
    def test_illegal_sequence(self, document):
        """Test that sequences are only accepted for thicknesses."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import IllegalSequenceContextError

        with pytest.raises(IllegalSequenceContextError):
            parse_config_string(document)

    @pytest.mark.parametrize("document", [
        "extrusion:\n  layers: 5abc\n",
        "extrusion:\n  layers: 0\n",
        "extrusion:\n  thicknesses: [1.0, two]\n",
        "jigsaw:\n  hfun_hmax: fast\n",
        "jigsaw:\n  optm_iter: 1.5\n",
    ])
    def test_invalid_number(self, document):
        """Test that numeric parameters are coerced strictly."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import InvalidNumberError

        with pytest.raises(InvalidNumberError):
            parse_config_string(document)

    def test_invalid_format(self):
        """Test that only exodus and hdf5 are accepted."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import InvalidParameterValueError

        with pytest.raises(InvalidParameterValueError):
            parse_config_string("output:\n  surface_mesh:\n    format: vtk\n")

    def test_output_scalar_value(self):
        """Test that an output descriptor must be a mapping."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import InvalidParameterValueError

        with pytest.raises(InvalidParameterValueError):
            parse_config_string("output:\n  surface_mesh: s.h5\n")

    def test_reopened_block(self):
        """Test that a block may be declared again with new keys."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import DuplicateParameterError

        config = parse_config_string(
            "data:\n  dem: a.txt\nextrusion:\n  layers: 2\ndata:\n  lat: b.txt\n"
        )
        assert config.data.dem == "a.txt"
        assert config.data.lat == "b.txt"

        with pytest.raises(DuplicateParameterError):
            parse_config_string("data:\n  dem: a.txt\ndata:\n  dem: b.txt\n")

    def test_document_syntax_error(self):
        """Test that malformed YAML is reported as a syntax error."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import DocumentSyntaxError, ErrorCode

        with pytest.raises(DocumentSyntaxError) as excinfo:
            parse_config_string("\tdata:\n")

        assert excinfo.value.code == ErrorCode.DOCUMENT_SYNTAX
        assert "line 1" in excinfo.value.message

    def test_alias_rejected(self):
        """Test that YAML aliases are not accepted."""
        from demesh.config.parser import parse_config_string
        from demesh.errors import DocumentSyntaxError

        with pytest.raises(DocumentSyntaxError):
            parse_config_string("data:\n  dem: &f elev.txt\n  lat: *f\n")

    def test_read_config(self, tmp_path):
        """Test reading a document from disk."""
        from demesh.config.parser import read_config

        path = tmp_path / "input.yaml"
        path.write_text(FULL_DOCUMENT)

        config = read_config(path)
        assert config.extrusion.num_layers == 5

    def test_read_config_missing_file(self, tmp_path):
        """Test that a missing file raises FileOpenError naming it."""
        from demesh.config.parser import read_config
        from demesh.errors import FileOpenError, ErrorCode

        path = tmp_path / "missing.yaml"
        with pytest.raises(FileOpenError) as excinfo:
            read_config(path)

        assert str(path) in excinfo.value.message
        assert excinfo.value.code == ErrorCode.FILE_OPEN

    def test_read_config_invalid_utf8(self, tmp_path):
        """Test that undecodable bytes are a syntax error."""
        from demesh.config.parser import read_config
        from demesh.errors import DocumentSyntaxError

        path = tmp_path / "input.yaml"
        path.write_bytes(b"data:\n  dem: \xff\xfe\xfa.txt\n")

        with pytest.raises(DocumentSyntaxError):
            read_config(path)


class TestDemeshConfig:
    """Tests for the configuration record."""

    def test_defaults(self):
        """Test default values."""
        from demesh.config.settings import DemeshConfig, MeshFormat

        config = DemeshConfig()
        assert config.data.dem is None
        assert config.extrusion.num_layers == 1
        assert config.output.surface_mesh.format == MeshFormat.EXODUS

    def test_resolved_options(self):
        """Test that unset engine knobs fall back to engine defaults."""
        from demesh.config.settings import TriangulationOptions, ENGINE_DEFAULTS

        options = TriangulationOptions(verbosity=3)
        resolved = options.resolved()

        assert resolved["verbosity"] == 3
        assert resolved["optm_iter"] == ENGINE_DEFAULTS["optm_iter"]
        assert set(resolved) == set(ENGINE_DEFAULTS)

    def test_option_tables_cover_fields(self):
        """Test that every knob is either an integer or a real option."""
        from dataclasses import fields
        from demesh.config.settings import (
            TriangulationOptions, INTEGER_OPTIONS, REAL_OPTIONS, ENGINE_DEFAULTS,
        )

        names = {f.name for f in fields(TriangulationOptions)}
        assert names == set(INTEGER_OPTIONS) | set(REAL_OPTIONS)
        assert names == set(ENGINE_DEFAULTS)
        assert not set(INTEGER_OPTIONS) & set(REAL_OPTIONS)

    def test_yaml_roundtrip(self, tmp_path):
        """Test that a saved configuration parses back to the same record."""
        from demesh.config.parser import parse_config_string, read_config

        config = parse_config_string(FULL_DOCUMENT)
        config.extrusion.layer_thicknesses = [20.0, 20.0, 20.0, 20.0, 20.0]

        path = tmp_path / "saved.yaml"
        config.to_yaml(path)

        assert read_config(path) == config

    def test_json_roundtrip(self, tmp_path):
        """Test to_json and load_config."""
        from demesh.config.parser import parse_config_string
        from demesh.config.settings import load_config

        config = parse_config_string(FULL_DOCUMENT)
        path = tmp_path / "saved.json"
        config.to_json(path)

        assert load_config(path) == config

    def test_from_dict_coerces_values(self):
        """Test that numbers given as strings are converted like YAML scalars."""
        from demesh.config.settings import DemeshConfig, MeshFormat

        config = DemeshConfig.from_dict({
            "jigsaw": {"verbosity": "2", "hfun_hmax": 0.05},
            "extrusion": {"layers": "3", "thicknesses": ["1.5", 2, 3.0]},
            "output": {"surface_mesh": {"format": "HDF5", "filename": "s.h5"}},
        })

        assert config.jigsaw.verbosity == 2
        assert config.jigsaw.hfun_hmax == 0.05
        assert config.extrusion.num_layers == 3
        assert config.extrusion.layer_thicknesses == [1.5, 2.0, 3.0]
        assert config.output.surface_mesh.format == MeshFormat.HDF5

    def test_from_dict_unknown_jigsaw_option_ignored(self):
        """Test that the engine block stays lenient for dictionaries."""
        from demesh.config.settings import DemeshConfig

        config = DemeshConfig.from_dict({"jigsaw": {"future_knob": 3, "mesh_dims": 2}})

        assert config.jigsaw.explicit() == {"mesh_dims": 2}

    @pytest.mark.parametrize("data,block,name", [
        ({"data": {"elevation": "a.txt"}}, "data", "elevation"),
        ({"meshing": {"layers": 2}}, "root", "meshing"),
        ({"output": {"surface_mesh": {"path": "s.h5"}}}, "surface_mesh", "path"),
    ])
    def test_from_dict_invalid_name(self, data, block, name):
        """Test that unknown keys are rejected with the block named."""
        from demesh.config.settings import DemeshConfig
        from demesh.errors import InvalidParameterNameError

        with pytest.raises(InvalidParameterNameError) as excinfo:
            DemeshConfig.from_dict(data)

        assert excinfo.value.block_name == block
        assert excinfo.value.param_name == name

    @pytest.mark.parametrize("extrusion", [
        {"layers": "0"},
        {"layers": 2.5},
        {"thickness": "abc"},
        {"thicknesses": [1.0, "two"]},
    ])
    def test_from_dict_invalid_number(self, extrusion):
        """Test that bad numeric values raise InvalidNumberError."""
        from demesh.config.settings import DemeshConfig
        from demesh.errors import InvalidNumberError

        with pytest.raises(InvalidNumberError):
            DemeshConfig.from_dict({"extrusion": extrusion})

    def test_from_dict_structure(self):
        """Test that mappings and sequences are only accepted where the document allows them."""
        from demesh.config.settings import DemeshConfig
        from demesh.errors import IllegalNestedMappingError, IllegalSequenceContextError

        with pytest.raises(IllegalNestedMappingError):
            DemeshConfig.from_dict({"data": {"dem": {"path": "elev.txt"}}})
        with pytest.raises(IllegalSequenceContextError):
            DemeshConfig.from_dict({"extrusion": {"layers": [1, 2]}})

    def test_json_unknown_key(self, tmp_path):
        """Test that a JSON file goes through the same name checks."""
        from demesh.config.settings import load_config
        from demesh.errors import InvalidParameterNameError, ErrorCode

        path = tmp_path / "input.json"
        path.write_text('{"data": {"dem": "elev.txt", "height": "h.txt"}}')

        with pytest.raises(InvalidParameterNameError) as excinfo:
            load_config(path)
        assert excinfo.value.code == ErrorCode.INVALID_PARAMETER_NAME

    def test_json_bad_value(self, tmp_path):
        """Test that a non-numeric thickness in JSON is rejected."""
        from demesh.config.settings import load_config
        from demesh.errors import InvalidNumberError

        path = tmp_path / "input.json"
        path.write_text('{"extrusion": {"layers": 2, "thickness": "abc"}}')

        with pytest.raises(InvalidNumberError):
            load_config(path)

    def test_json_duplicate_key(self, tmp_path):
        """Test that a key repeated inside one JSON object is a duplicate."""
        from demesh.config.settings import load_config
        from demesh.errors import DuplicateParameterError

        path = tmp_path / "input.json"
        path.write_text('{"data": {"dem": "a.txt", "dem": "b.txt"}}')

        with pytest.raises(DuplicateParameterError) as excinfo:
            load_config(path)
        assert excinfo.value.block_name == "data"

    def test_json_syntax_error(self, tmp_path):
        """Test that malformed JSON is reported as a syntax error."""
        from demesh.config.settings import load_config
        from demesh.errors import DocumentSyntaxError

        path = tmp_path / "input.json"
        path.write_text('{"data": {"dem": "a.txt",}}')

        with pytest.raises(DocumentSyntaxError):
            load_config(path)
