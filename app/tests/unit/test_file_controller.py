"""Tests for FileController."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from controllers.diagram_controller import DiagramController
from controllers.file_controller import FileController, read_diagram, validate_diagram_data
from models.diagram import DiagramModel
from simulation.errors import UnresolvedReferenceError
from tests.conftest import make_wire


@pytest.fixture
def settings():
    """Patch QSettings so tests never touch the user's recent files."""
    with patch("controllers.file_controller.QSettings") as mock_qsettings:
        instance = MagicMock()
        instance.value.return_value = []
        mock_qsettings.return_value = instance
        yield instance


def _write(path, data):
    path.write_text(json.dumps(data))
    return path


STAGE = {
    "name": "stage",
    "components": [{"name": "inv", "type": "Inverter"}, {"name": "tap", "type": "Node"}],
    "wires": [{"name": "link", "points": [{"name": "inv", "io": "out"}, {"name": "tap"}]}],
}


class TestSaveLoad:
    def test_save_creates_file(self, tmp_path, series_model, settings):
        ctrl = FileController(series_model)
        filepath = tmp_path / "series.json"
        ctrl.save_diagram(filepath)
        assert filepath.exists()
        assert ctrl.current_file == filepath

    def test_save_writes_valid_json(self, tmp_path, series_model, settings):
        filepath = tmp_path / "series.json"
        FileController(series_model).save_diagram(filepath)
        data = json.loads(filepath.read_text())
        assert data["testable"] is True
        assert len(data["components"]) == 4
        assert len(data["wires"]) == 4

    def test_save_load_round_trip(self, tmp_path, series_model, settings):
        filepath = tmp_path / "series.json"
        FileController(series_model).save_diagram(filepath)

        loaded = FileController().load_diagram(filepath)
        assert loaded.components == series_model.components
        assert loaded.wires == series_model.wires
        assert loaded.testable is True

    def test_load_uses_file_stem_for_unnamed_diagram(self, tmp_path, settings):
        filepath = _write(tmp_path / "blinker.json", {"components": []})
        assert FileController().load_diagram(filepath).name == "blinker"

    def test_load_invalid_json_raises(self, tmp_path, settings):
        filepath = tmp_path / "bad.json"
        filepath.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            FileController().load_diagram(filepath)

    def test_load_nonexistent_raises(self, tmp_path, settings):
        with pytest.raises(OSError):
            FileController().load_diagram(tmp_path / "nope.json")

    def test_load_builds_into_attached_controller(self, tmp_path, settings):
        filepath = _write(tmp_path / "lamp.json", {
            "components": [{"name": "v", "type": "V"}, {"name": "lamp", "type": "Lightbulb"}],
            "wires": [{"name": "w", "points": [{"name": "v"}, {"name": "lamp", "io": "left"}]}],
        })
        diagram_ctrl = DiagramController()
        FileController(diagram_ctrl=diagram_ctrl).load_diagram(filepath)
        assert diagram_ctrl.state("lamp") is True

    def test_new_diagram_resets(self, tmp_path, series_model, settings):
        diagram_ctrl = DiagramController(series_model)
        diagram_ctrl.load()
        ctrl = FileController(series_model, diagram_ctrl)
        ctrl.current_file = tmp_path / "series.json"

        ctrl.new_diagram()
        assert ctrl.current_file is None
        assert series_model.components == []
        assert not diagram_ctrl.is_loaded

    def test_window_title(self, tmp_path):
        ctrl = FileController()
        assert ctrl.get_window_title() == "Propagating Circuits"
        assert not ctrl.has_file()
        ctrl.current_file = tmp_path / "series.json"
        assert ctrl.get_window_title() == "Propagating Circuits - series.json"
        assert ctrl.has_file()


class TestExternalFiles:
    def test_external_resolved_next_to_diagram(self, tmp_path, settings):
        _write(tmp_path / "stage.json", STAGE)
        filepath = _write(tmp_path / "chain.json", {
            "components": [{"name": "stage1", "type": "External", "file": "stage"}],
        })
        ctrl = FileController()
        ctrl.load_diagram(filepath)
        registry = ctrl.build().context.registry
        assert "stage1.inv" in registry
        assert registry.get("stage1.tap").output is True

    def test_external_with_explicit_suffix(self, tmp_path):
        _write(tmp_path / "stage.json", STAGE)
        model = DiagramModel(name="chain")
        model.add_external("stage1", "stage.json")
        builder = FileController().builder_for(tmp_path / "chain.json")
        assert "stage1.link" in builder.build(model).context.registry

    def test_missing_external_file(self, tmp_path):
        model = DiagramModel(name="chain")
        model.add_external("stage1", "missing")
        builder = FileController().builder_for(tmp_path / "chain.json")
        with pytest.raises(UnresolvedReferenceError):
            builder.build(model)


class TestValidation:
    def test_valid_data_passes(self):
        validate_diagram_data({
            "components": [{"comment": "a note"}, {"name": "s", "type": "Switch"}],
            "wires": [{"points": [{"name": "s"}, {"x": 1}, {"name": "s", "io": "out"}]}],
        })

    def test_not_a_dict(self):
        with pytest.raises(ValueError, match="valid diagram object"):
            validate_diagram_data([])

    def test_missing_components(self):
        with pytest.raises(ValueError, match="components"):
            validate_diagram_data({"wires": []})

    def test_invalid_wires(self):
        with pytest.raises(ValueError, match="wires"):
            validate_diagram_data({"components": [], "wires": {}})

    def test_component_missing_type(self):
        with pytest.raises(ValueError, match="'type'"):
            validate_diagram_data({"components": [{"name": "s"}]})

    def test_external_without_file(self):
        with pytest.raises(ValueError, match="'file'"):
            validate_diagram_data({"components": [{"name": "x", "type": "External"}]})

    def test_duplicate_names(self):
        with pytest.raises(ValueError, match="Duplicate component name 's'"):
            validate_diagram_data({
                "components": [{"name": "s", "type": "Switch"}, {"name": "s", "type": "Lightbulb"}],
            })

    def test_wire_with_one_point(self):
        with pytest.raises(ValueError, match="at least two points"):
            validate_diagram_data({"components": [], "wires": [{"points": [{"name": "s"}]}]})

    def test_wire_ending_nowhere(self):
        data = {"components": [], "wires": [make_wire("w", "s", "s")]}
        data["wires"][0]["points"][-1] = {"x": 3, "y": 4}
        with pytest.raises(ValueError, match="last point"):
            validate_diagram_data(data)

    def test_dependency_without_name(self):
        with pytest.raises(ValueError, match="Dependency #1"):
            validate_diagram_data({"components": [], "dependencies": [{"contrary": ["a"]}]})

    def test_read_diagram(self, tmp_path):
        filepath = _write(tmp_path / "d.json", {"name": "d", "components": [], "consistency": True})
        model = read_diagram(filepath)
        assert model.name == "d"
        assert model.consistency is True


class TestRecentFiles:
    @patch("controllers.file_controller.QSettings")
    def test_get_recent_files_returns_empty_list_initially(self, mock_qsettings):
        mock_settings_instance = MagicMock()
        mock_settings_instance.value.return_value = []
        mock_qsettings.return_value = mock_settings_instance

        assert FileController().get_recent_files() == []

    def test_add_recent_file_adds_to_list(self, settings, tmp_path):
        filepath = tmp_path / "test.json"
        filepath.touch()
        FileController().add_recent_file(filepath)

        call_args = settings.setValue.call_args
        assert call_args[0][0] == "file/recent_files"
        assert str(filepath.absolute()) in call_args[0][1]

    @patch("controllers.file_controller.os.path.exists")
    def test_add_recent_file_moves_to_front_if_exists(self, mock_exists, settings, tmp_path):
        file1 = str((tmp_path / "file1.json").absolute())
        file2 = str((tmp_path / "file2.json").absolute())
        mock_exists.return_value = True
        settings.value.return_value = [file2, file1]

        FileController().add_recent_file(Path(file1))

        saved_list = settings.setValue.call_args[0][1]
        assert saved_list == [file1, file2]

    @patch("controllers.file_controller.os.path.exists")
    def test_add_recent_file_maintains_max_limit(self, mock_exists, settings, tmp_path):
        mock_exists.return_value = True
        settings.value.return_value = [str((tmp_path / f"file{i}.json").absolute()) for i in range(10)]
        new_file = tmp_path / "file11.json"

        FileController().add_recent_file(new_file)

        saved_list = settings.setValue.call_args[0][1]
        assert len(saved_list) == 10
        assert saved_list[0] == str(new_file.absolute())

    @patch("controllers.file_controller.os.path.exists")
    def test_get_recent_files_filters_missing_files(self, mock_exists, settings, tmp_path):
        file1 = str((tmp_path / "exists.json").absolute())
        file2 = str((tmp_path / "missing.json").absolute())
        mock_exists.side_effect = lambda f: f == file1
        settings.value.return_value = [file1, file2]

        assert FileController().get_recent_files() == [file1]
        assert settings.setValue.called

    def test_non_list_setting_is_ignored(self, settings):
        settings.value.return_value = "garbage"
        assert FileController().get_recent_files() == []

    def test_clear_recent_files(self, settings):
        FileController().clear_recent_files()
        settings.setValue.assert_called_with("file/recent_files", [])

    def test_load_updates_recent_files(self, settings, tmp_path):
        filepath = _write(tmp_path / "d.json", {"components": []})
        FileController().load_diagram(filepath)
        calls = [call[0][0] for call in settings.setValue.call_args_list]
        assert "file/recent_files" in calls
