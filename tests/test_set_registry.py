"""Tests for the set worklist, set-code map, and checkpoint."""

from pathlib import Path

from pricekeeper.services.checkpoint import Checkpoint
from pricekeeper.services.set_registry import (
    SetRegistry,
    list_available_sets,
    load_set_code_map,
    load_set_names,
    save_selected_sets,
)


class TestLoadSetNames:
    def test_reads_trimmed_non_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "update_sets.txt"
        path.write_text("Foundations\n\n  Aetherdrift  \n\t\nDuskmourn\n")

        assert load_set_names(path) == ["Foundations", "Aetherdrift", "Duskmourn"]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_set_names(tmp_path / "missing.txt") == []


class TestLoadSetCodeMap:
    def test_reads_pairs(self, tmp_path: Path) -> None:
        path = tmp_path / "set_codes.csv"
        path.write_text("Foundations, FDN\nAetherdrift,DFT\n")

        assert load_set_code_map(path) == {"Foundations": "FDN", "Aetherdrift": "DFT"}

    def test_skips_lines_without_comma(self, tmp_path: Path) -> None:
        path = tmp_path / "set_codes.csv"
        path.write_text("Header without comma\nFoundations,FDN\n")

        assert load_set_code_map(path) == {"Foundations": "FDN"}

    def test_skips_lines_with_extra_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "set_codes.csv"
        path.write_text("Foundations,FDN,extra\nAetherdrift,DFT\n")

        assert load_set_code_map(path) == {"Aetherdrift": "DFT"}

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert load_set_code_map(tmp_path / "missing.csv") == {}


class TestSelection:
    def test_list_available_sets_in_file_order(self, tmp_path: Path) -> None:
        path = tmp_path / "set_codes.csv"
        path.write_text("Foundations,FDN\nno comma\nAetherdrift,DFT\n")

        assert list_available_sets(path) == ["Foundations", "Aetherdrift"]

    def test_save_selected_sets_round_trips(self, tmp_path: Path) -> None:
        path = tmp_path / "data" / "update_sets.txt"
        save_selected_sets(["Foundations", "Aetherdrift"], path)

        assert load_set_names(path) == ["Foundations", "Aetherdrift"]


class TestSetRegistry:
    def test_resolve_is_case_insensitive(self) -> None:
        registry = SetRegistry(set_names=["foundations"], set_codes={"Foundations": "FDN"})

        assert registry.resolve_code("foundations") == "FDN"
        assert registry.resolve_code("FOUNDATIONS") == "FDN"

    def test_resolve_unknown_returns_none(self) -> None:
        registry = SetRegistry(set_codes={"Foundations": "FDN"})

        assert registry.resolve_code("Aetherdrift") is None

    def test_load(self, tmp_path: Path) -> None:
        worklist = tmp_path / "update_sets.txt"
        codes = tmp_path / "set_codes.csv"
        worklist.write_text("Aetherdrift\nFoundations\n")
        codes.write_text("Foundations,FDN\nAetherdrift,DFT\n")

        registry = SetRegistry.load(worklist, codes)

        assert registry.set_names == ["Aetherdrift", "Foundations"]
        assert registry.resolve_code("Aetherdrift") == "DFT"


class TestCheckpoint:
    def test_absent_reads_none(self, tmp_path: Path) -> None:
        assert Checkpoint(tmp_path / "progress.txt").read() is None

    def test_write_then_read(self, tmp_path: Path) -> None:
        checkpoint = Checkpoint(tmp_path / "data" / "progress.txt")
        checkpoint.write("Foundations")

        assert checkpoint.read() == "Foundations"

    def test_blank_file_reads_none(self, tmp_path: Path) -> None:
        path = tmp_path / "progress.txt"
        path.write_text("  \n")

        assert Checkpoint(path).read() is None

    def test_write_replaces_previous(self, tmp_path: Path) -> None:
        checkpoint = Checkpoint(tmp_path / "progress.txt")
        checkpoint.write("Foundations")
        checkpoint.write("Aetherdrift")

        assert checkpoint.read() == "Aetherdrift"

    def test_clear_removes_file(self, tmp_path: Path) -> None:
        checkpoint = Checkpoint(tmp_path / "progress.txt")
        checkpoint.write("Foundations")
        checkpoint.clear()

        assert not checkpoint.path.exists()
        assert checkpoint.read() is None
        checkpoint.clear()
