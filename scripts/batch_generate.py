#!/usr/bin/env python3
"""
BATCH REPORT CARD GENERATOR
Generates report cards for every student in a backup, one folder per class.

Output structure:
<output_dir>/
├── Grade 7A/
├── Grade 7B/
└── Unassigned/

Naming: <student id>_<Name>_report_card.html
Usage: python3 scripts/batch_generate.py <backup.json> <output_dir> [view] [sponsor_id]
"""

import logging
import sys
from collections import defaultdict
from pathlib import Path
from typing import Dict, List

from report_card_builder.config import get_settings
from report_card_builder.data_models import ReportCard
from report_card_builder.data_processor import ReportCardDataProcessor
from report_card_builder.report_card_generator import GenerationResult, ReportCardGenerator
from report_card_builder.report_table import get_view_profile


def group_by_class(report_cards: List[ReportCard]) -> Dict[str, List[ReportCard]]:
    groups = defaultdict(list)
    for card in report_cards:
        folder = (card.class_name or "").strip() or "Unassigned"
        groups[folder].append(card)
    return dict(groups)


def print_summary(results: List[GenerationResult]):
    failed = [r for r in results if not r.success]
    print(f"\n📊 Generated {len(results) - len(failed)} of {len(results)} report cards")
    for r in failed:
        print(f"   ❌ [{r.student_id}] {r.student_name}: {r.error}")


def main(argv):
    if len(argv) < 3:
        print("Usage: python3 scripts/batch_generate.py <backup.json> <output_dir> [view] [sponsor_id]")
        return 1

    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    # Per-card progress comes from tqdm
    logging.getLogger("report_card_builder.report_card_generator").setLevel(logging.WARNING)

    backup_path = Path(argv[1]).expanduser()
    output_dir = Path(argv[2]).expanduser()
    view = argv[3] if len(argv) > 3 else "report_card"
    sponsor_id = argv[4] if len(argv) > 4 else None

    processor = ReportCardDataProcessor(backup_path.parent)
    if not processor.load_backup(backup_path):
        print(processor.generate_validation_report())
        return 1

    if sponsor_id:
        cards = processor.cards_for_actor(sponsor_id)
    else:
        cards = processor.cards_for_actor("", is_super_admin=True)
    cards = [c for c in cards if not c.is_archived]

    generator = ReportCardGenerator(settings=settings)
    profile = get_view_profile(view, settings)

    results: List[GenerationResult] = []
    for folder, folder_cards in sorted(group_by_class(cards).items()):
        print(f"\n📁 {folder}: {len(folder_cards)} students")
        results.extend(generator.generate_batch(folder_cards, output_dir / folder, profile))

    print_summary(results)
    return 0 if all(r.success for r in results) else 2


if __name__ == "__main__":
    sys.exit(main(sys.argv))
