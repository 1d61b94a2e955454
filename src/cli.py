"""Command-line interface for correcting and parsing recognized text.

Provides subcommands for correcting one text file, parsing one text
file into fields, and parsing a folder of text files into a CSV.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from src.correction.text_corrector import TextCorrector
from src.ocr.document_processor import DocumentProcessor
from src.ocr.document_type import DocumentType
from src.utils.config import load_config
from src.utils.logger import get_logger, setup_logging
from src.validation.rules_engine import RulesEngine

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.txt",)
_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "correction_confidence",
    "correction_count",
    "validation_passed",
    "error",
]
_DOCUMENT_TYPES = [t.value for t in DocumentType]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all recognized-text files in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of text file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def process_folder(
    input_dir: Path,
    output_csv: Path,
    document_type: DocumentType = DocumentType.BUSINESS_REGISTRATION,
    verbose: bool = False,
) -> dict[str, int]:
    """Parse all text files in a folder and export the fields to CSV.

    Args:
        input_dir: Directory containing recognized-text files.
        output_csv: Path for the output CSV file.
        document_type: Declared document type of every file.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    processor = DocumentProcessor(config)
    validator = RulesEngine(Path(config.validation.rules_path))

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No text files found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = _process_single_file(
                file_path, processor, validator, document_type
            )
            result["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(result)
            successful += 1
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _process_single_file(
    file_path: Path,
    processor: DocumentProcessor,
    validator: RulesEngine,
    document_type: DocumentType,
) -> dict[str, object]:
    """Correct, parse and validate one text file.

    Returns:
        Flat dictionary of metadata and field values.
    """
    text = file_path.read_text(encoding="utf-8")
    doc_result = processor.process_text(text, document_type)
    fields = doc_result.fields.to_dict()
    validation = validator.validate(fields, document_type)

    result: dict[str, object] = {
        "filename": file_path.name,
        "status": "success",
        "correction_confidence": round(doc_result.correction_confidence, 3),
        "correction_count": len(doc_result.corrections),
        "validation_passed": validation.all_valid,
        "error": None,
    }
    result.update(fields)
    return result


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def correct_single(file_path: Path) -> dict[str, object]:
    """Run the correction passes over one text file.

    Returns:
        Dictionary with the corrected text, the log and its confidence.
    """
    config = load_config()
    result = TextCorrector(config.correction).correct(
        file_path.read_text(encoding="utf-8")
    )
    return {
        "filename": file_path.name,
        "original": result.original,
        "corrected": result.corrected,
        "confidence": round(result.confidence, 3),
        "corrections": [
            {
                "position": c.position,
                "original": c.original,
                "corrected": c.corrected,
                "method": str(c.method),
                "confidence": c.confidence,
            }
            for c in result.corrections
        ],
    }


def parse_single(
    file_path: Path,
    document_type: DocumentType = DocumentType.BUSINESS_REGISTRATION,
    correct: bool = True,
) -> dict[str, object]:
    """Parse one text file into fields.

    Args:
        file_path: Recognized-text file.
        document_type: Declared document type.
        correct: Whether to run correction before parsing.

    Returns:
        Dictionary with filename, fields, and both text variants.
    """
    config = load_config()
    processor = DocumentProcessor(config)
    doc_result = processor.process_text(
        file_path.read_text(encoding="utf-8"), document_type, correct=correct
    )
    return {
        "filename": file_path.name,
        "document_type": str(document_type),
        "fields": doc_result.fields.to_dict(),
        "raw_text": doc_result.raw_text,
        "corrected_text": doc_result.corrected_text,
        "correction_confidence": round(doc_result.correction_confidence, 3),
    }


def _emit(result: dict[str, object], output: Path | None) -> None:
    output_str = json.dumps(result, indent=2, ensure_ascii=False)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str, encoding="utf-8")
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Registration Certificate OCR Post-Processor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    correct_parser = subparsers.add_parser("correct", help="Correct one text file")
    correct_parser.add_argument("file", type=Path, help="Recognized text file")
    correct_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    parse_parser = subparsers.add_parser("parse", help="Parse one text file")
    parse_parser.add_argument("file", type=Path, help="Recognized text file")
    parse_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        default=DocumentType.BUSINESS_REGISTRATION.value,
        dest="doc_type",
        help="Document type (default: business_registration)",
    )
    parse_parser.add_argument(
        "--no-correct", action="store_true", help="Skip text correction"
    )
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Parse a folder of text files")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        default=DocumentType.BUSINESS_REGISTRATION.value,
        dest="doc_type",
        help="Document type (default: business_registration)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    args = parser.parse_args(argv)

    setup_logging()

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir, args.output, DocumentType(args.doc_type), args.verbose
        )
    elif args.command in ("correct", "parse"):
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        if args.command == "correct":
            result = correct_single(args.file)
        else:
            result = parse_single(
                args.file, DocumentType(args.doc_type), not args.no_correct
            )
        _emit(result, args.output)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
