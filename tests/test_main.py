"""Tests for the command line host."""
import json

import pytest

import main
from village_builder.models import BuildingType, ResourceType, UnknownBuildingError
from village_builder.systems.controller import VillageController


class TestParseAction:
    def test_build(self) -> None:
        assert main.parse_action("build:woodcutter") == ("build", BuildingType.WOODCUTTER)

    def test_wait(self) -> None:
        assert main.parse_action("wait:6") == ("wait", 6.0)

    def test_unknown_building(self) -> None:
        with pytest.raises(UnknownBuildingError):
            main.parse_action("build:castle")

    @pytest.mark.parametrize(
        "text",
        ["woodcutter", "build:", "demolish:wall", "wait:-3", "wait:inf", "wait:nan"],
    )
    def test_invalid(self, text) -> None:
        with pytest.raises(ValueError):
            main.parse_action(text)


class TestFormatting:
    def test_format_time(self) -> None:
        assert main.format_time(0) == "00:00"
        assert main.format_time(75.5) == "01:15"


class TestMain:
    def test_quiet_prints_final_resources(self, capsys) -> None:
        assert main.main(["-q", "build:woodcutter"]) == 0
        out = capsys.readouterr().out
        assert "wood=460 clay=440 iron=470 crop=490" in out

    def test_full_output_renders(self, capsys) -> None:
        assert main.main(["--language", "en", "build:cropland", "build:wall"]) == 0
        out = capsys.readouterr().out
        assert "Cropland" in out
        assert "Buildings" in out

    def test_export_report(self, tmp_path) -> None:
        report_path = tmp_path / "report.json"
        code = main.main(
            ["-q", "--export", str(report_path), "build:woodcutter", "wait:3"]
        )
        assert code == 0

        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert report["population"] == 60
        assert report["buildings"] == {"woodcutter": 1}
        assert report["resources"]["wood"] == 465
        assert report["ticks"] == 1
        assert report["log"][0]["success"] is True
        assert report["log"][0]["costs"]["clay"] == 60

    def test_tick_interval_flag(self, tmp_path) -> None:
        report_path = tmp_path / "report.json"
        main.main(
            [
                "-q",
                "--tick-interval",
                "1",
                "--export",
                str(report_path),
                "build:cropland",
                "wait:5",
            ]
        )
        report = json.loads(report_path.read_text(encoding="utf-8"))
        assert report["ticks"] == 5
        assert report["resources"]["crop"] == 490 + 25

    def test_bad_action_exits_with_error(self, capsys) -> None:
        assert main.main(["build:castle"]) == 1
        assert "castle" in capsys.readouterr().out

    def test_bad_config_exits_with_error(self, tmp_path) -> None:
        config_path = tmp_path / "village.json"
        config_path.write_text('{"tick_interval": -1}', encoding="utf-8")
        assert main.main(["--config", str(config_path)]) == 1

    def test_infinite_wait_exits_with_error(self, capsys) -> None:
        assert main.main(["-q", "build:woodcutter", "wait:inf"]) == 1
        assert "inf" in capsys.readouterr().out

    def test_wrongly_typed_config_exits_with_error(self, tmp_path, capsys) -> None:
        config_path = tmp_path / "village.json"
        config_path.write_text('{"tick_interval": "3"}', encoding="utf-8")
        assert main.main(["-q", "--config", str(config_path)]) == 1
        assert "tick_interval" in capsys.readouterr().out


class TestInteractive:
    def _answers(self, monkeypatch, answers):
        replies = iter(answers)

        def ask(*args, **kwargs):
            reply = next(replies)
            if isinstance(reply, BaseException):
                raise reply
            return reply

        monkeypatch.setattr(main.Prompt, "ask", ask)

    @pytest.mark.parametrize("interrupt", [EOFError(), KeyboardInterrupt()])
    def test_interrupt_ends_session(self, monkeypatch, interrupt) -> None:
        self._answers(monkeypatch, ["build woodcutter", interrupt])
        controller = VillageController()
        main.run_interactive(controller)
        assert controller.level(BuildingType.WOODCUTTER) == 1

    def test_non_finite_wait_is_reported(self, monkeypatch, capsys) -> None:
        self._answers(monkeypatch, ["wait inf", "wait nan", "quit"])
        controller = VillageController()
        main.run_interactive(controller)
        assert "finite" in capsys.readouterr().out
        assert controller.state.ledger.get(ResourceType.WOOD) == 500
