"""Tests for the command-line interface and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.cli import (
    _find_documents,
    _print_summary,
    _write_csv,
    correct_single,
    main,
    parse_single,
    process_folder,
)
from src.ocr.document_type import DocumentType
from src.utils.config import AppConfig


@pytest.fixture
def certificate_file(tmp_path: Path, certificate_text: str) -> Path:
    path = tmp_path / "cert.txt"
    path.write_text(certificate_text, encoding="utf-8")
    return path


class TestFindDocuments:
    """Tests for text file discovery."""

    def test_find_text_files(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").touch()
        (tmp_path / "b.txt").touch()
        (tmp_path / "image.png").touch()
        docs = _find_documents(tmp_path)
        assert [d.name for d in docs] == ["a.txt", "b.txt"]

    def test_find_uppercase_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "SCAN.TXT").touch()
        assert len(_find_documents(tmp_path)) == 1

    def test_find_no_documents(self, tmp_path: Path) -> None:
        assert _find_documents(tmp_path) == []


class TestCSVExport:
    """Tests for CSV writing."""

    def test_write_csv_content(self, tmp_path: Path) -> None:
        output = tmp_path / "out" / "results.csv"
        results = [
            {
                "filename": "a.txt",
                "status": "success",
                "representative": "홍길동",
                "corporate_name": "주식회사 테스트",
            },
            {"filename": "b.txt", "status": "failed", "error": "bad bytes"},
        ]
        _write_csv(results, output)

        with open(output, encoding="utf-8") as f:
            reader = csv.DictReader(f)
            rows = list(reader)
            header = reader.fieldnames

        assert header == [
            "filename",
            "status",
            "error",
            "corporate_name",
            "representative",
        ]
        assert rows[0]["representative"] == "홍길동"
        assert rows[1]["error"] == "bad bytes"

    def test_write_csv_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "empty.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("results.csv"))
        captured = capsys.readouterr()
        assert "Total:      5" in captured.out
        assert "Successful: 4" in captured.out
        assert "Failed:     1" in captured.out
        assert "results.csv" in captured.out


@patch("src.cli.load_config", return_value=AppConfig())
class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_process_folder_success(
        self, mock_config: MagicMock, tmp_path: Path, certificate_text: str
    ) -> None:
        (tmp_path / "doc1.txt").write_text(certificate_text, encoding="utf-8")
        (tmp_path / "doc2.txt").write_text("대표자 : 김철수", encoding="utf-8")
        output_csv = tmp_path / "output.csv"

        summary = process_folder(tmp_path, output_csv)
        assert summary == {"total": 2, "successful": 2, "failed": 0}

        with open(output_csv, encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["registration_number"] == "123-45-67891"
        assert rows[0]["validation_passed"] == "True"
        assert rows[1]["representative"] == "김철수"

    def test_process_folder_with_failure(
        self, mock_config: MagicMock, tmp_path: Path
    ) -> None:
        (tmp_path / "good.txt").write_text("대표자 : 홍길동", encoding="utf-8")
        (tmp_path / "bad.txt").write_bytes(b"\xff\xfe\xfa")
        output_csv = tmp_path / "output.csv"

        summary = process_folder(tmp_path, output_csv)
        assert summary["successful"] == 1
        assert summary["failed"] == 1

    def test_process_folder_empty(self, mock_config: MagicMock, tmp_path: Path) -> None:
        summary = process_folder(tmp_path, tmp_path / "output.csv")
        assert summary["total"] == 0

    def test_process_folder_verbose(
        self,
        mock_config: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        (tmp_path / "doc1.txt").write_text("대표자 : 홍길동", encoding="utf-8")
        process_folder(tmp_path, tmp_path / "output.csv", verbose=True)
        captured = capsys.readouterr()
        assert "Processing [1/1]" in captured.out


@patch("src.cli.load_config", return_value=AppConfig())
class TestSingleFile:
    """Tests for single-file correction and parsing."""

    def test_correct_single(self, mock_config: MagicMock, tmp_path: Path) -> None:
        path = tmp_path / "raw.txt"
        path.write_text("내표자 : 홍길동", encoding="utf-8")
        result = correct_single(path)
        assert result["corrected"] == "대표자 : 홍길동"
        assert result["corrections"][0]["method"] == "dictionary"

    def test_parse_single(self, mock_config: MagicMock, certificate_file: Path) -> None:
        result = parse_single(certificate_file)
        assert result["filename"] == "cert.txt"
        assert result["document_type"] == "business_registration"
        assert result["fields"]["head_address"] == "서울특별시 서초구 서초대로 456"

    def test_parse_single_id_card(
        self, mock_config: MagicMock, certificate_file: Path
    ) -> None:
        result = parse_single(certificate_file, DocumentType.ID_CARD)
        assert set(result["fields"]) == {"name", "rrn", "address", "issue_date"}


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_nonexistent_directory(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_parse_nonexistent_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["parse", "/nonexistent/file.txt"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_document_type(self, certificate_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["parse", str(certificate_file), "-t", "passport"])
        assert exc_info.value.code == 2

    @patch("src.cli.process_folder")
    def test_batch_with_options(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-o", str(output), "-t", "unknown", "-v"])
        mock_pf.assert_called_once_with(tmp_path, output, DocumentType.UNKNOWN, True)

    @patch("src.cli.parse_single")
    def test_parse_command(
        self,
        mock_parse: MagicMock,
        certificate_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_parse.return_value = {
            "filename": "cert.txt",
            "fields": {"representative": "홍길동"},
        }
        main(["parse", str(certificate_file), "--no-correct"])

        mock_parse.assert_called_once_with(
            certificate_file, DocumentType.BUSINESS_REGISTRATION, False
        )
        output = json.loads(capsys.readouterr().out)
        assert output["fields"]["representative"] == "홍길동"

    @patch("src.cli.load_config", return_value=AppConfig())
    def test_correct_to_output_file(
        self, mock_config: MagicMock, tmp_path: Path
    ) -> None:
        source = tmp_path / "raw.txt"
        source.write_text("대\n표자 : 홍길동", encoding="utf-8")
        output = tmp_path / "out" / "result.json"

        main(["correct", str(source), "-o", str(output)])

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["corrected"] == "대표자 : 홍길동"
