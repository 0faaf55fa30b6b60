#!/usr/bin/env python3
"""
Simple wrapper to generate a report card for a given student ID
Usage: python3 generate_report_card.py <backup.json> <student_id> <output_dir> [view] [numeric|letter]
"""

import logging
import sys
from pathlib import Path

from report_card_builder.config import get_settings
from report_card_builder.data_models import GradeDisplayMode
from report_card_builder.data_processor import ReportCardDataProcessor
from report_card_builder.report_card_generator import ReportCardGenerator, output_filename
from report_card_builder.report_table import get_view_profile


def main(argv):
    if len(argv) < 4:
        print("ERROR: Missing arguments")
        print("Usage: python3 generate_report_card.py <backup.json> <student_id> <output_dir> [view] [numeric|letter]")
        return 1

    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    backup_path = Path(argv[1]).expanduser()
    student_id = argv[2]
    output_dir = Path(argv[3]).expanduser()
    view = argv[4] if len(argv) > 4 else "report_card"
    display_mode = GradeDisplayMode(argv[5]) if len(argv) > 5 else None

    print(f"Starting report card generation...")
    print(f"  Backup:     {backup_path}")
    print(f"  Student ID: {student_id}")
    print(f"  Output Dir: {output_dir}")

    processor = ReportCardDataProcessor(backup_path.parent)
    if not processor.load_backup(backup_path):
        print(processor.generate_validation_report())
        return 1

    try:
        report_card = processor.get_report_card(student_id)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    generator = ReportCardGenerator(settings=settings)
    output_path = output_dir / output_filename(report_card)
    generator.generate(report_card, get_view_profile(view, settings), output_path, display_mode)

    print(f"\n✅ SUCCESS!")
    print(f"Report card saved to: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
