#!/usr/bin/env python3
"""
REPORT CARD GENERATOR - HTML report cards from the report table payload

GENERATION PROCESS:
1. Build the report table for the requested view
2. Render the HTML template with student details and the table
3. Save to the output directory (optional)

FEATURES:
✅ Jinja2 template rendering with HTML autoescaping
✅ Number / letter display toggle
✅ Failing, needs-attention, highest and lowest cell classes
✅ Batch generation with progress bar and per-student error capture

Priority: MEDIUM - Rendering collaborator
Dependencies: Jinja2, tqdm, report_table
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from tqdm import tqdm

from .config import ReportCardSettings, get_settings
from .data_models import GradeDisplayMode, ReportCard
from .report_table import ReportTable, ViewProfile, build_report_table, get_view_profile

logger = logging.getLogger(__name__)


TEMPLATE_NAME = "report_card.html"


@dataclass
class GenerationResult:
    student_id: str
    student_name: str
    success: bool
    output_path: Optional[str]
    error: Optional[str]


class ReportCardGenerator:
    """Render report cards to HTML"""

    def __init__(self, templates_dir: Optional[Path] = None, settings: Optional[ReportCardSettings] = None):
        """
        Initialize report card generator

        Args:
            templates_dir: Directory holding report_card.html (defaults to the packaged templates)
            settings: Report card settings
        """
        self.settings = settings or get_settings()
        if templates_dir is None:
            templates_dir = self.settings.TEMPLATES_DIR or Path(__file__).parent / "templates"
        self.templates_dir = Path(templates_dir)

        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.env.filters["cell_classes"] = lambda flags: " ".join(f.replace("_", "-") for f in flags)

        logger.info(f"Report card generator initialized")
        logger.info(f"Templates: {self.templates_dir}")

    def prepare_template_data(self, report_card: ReportCard, table: ReportTable) -> Dict[str, Any]:
        """Prepare data dictionary for template rendering"""
        return {
            "student": report_card,
            "school_name": report_card.school_name or self.settings.DEFAULT_SCHOOL_NAME,
            "academic_year": report_card.academic_year or self.settings.DEFAULT_ACADEMIC_YEAR,
            "principal_comment": report_card.principal_comment or "No remarks provided.",
            "table": table,
            "column_count": len(table.header),
            "issue_date": datetime.now().strftime("%B %d, %Y"),
        }

    def render(
        self,
        report_card: ReportCard,
        profile: Optional[ViewProfile] = None,
        display_mode: Optional[GradeDisplayMode] = None,
    ) -> str:
        """Render one report card to an HTML string"""
        profile = profile or get_view_profile("report_card", self.settings)
        table = build_report_table(report_card, profile, display_mode)
        template = self.env.get_template(TEMPLATE_NAME)
        return template.render(**self.prepare_template_data(report_card, table))

    def generate(
        self,
        report_card: ReportCard,
        profile: Optional[ViewProfile] = None,
        output_path: Optional[Path] = None,
        display_mode: Optional[GradeDisplayMode] = None,
    ) -> str:
        """
        Generate a report card

        Args:
            report_card: Card to render
            profile: View rules (printable report card view by default)
            output_path: Where to write the HTML (not written when None)
            display_mode: Numeric or letter override

        Returns:
            The rendered HTML
        """
        logger.info(f"📄 Generating report card for student {report_card.student_id}")
        html_content = self.render(report_card, profile, display_mode)

        if output_path is not None:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(html_content, encoding="utf-8")
            logger.info(f"  ✅ Saved to {output_path}")

        return html_content

    def generate_batch(
        self,
        report_cards: Iterable[ReportCard],
        output_dir: Path,
        profile: Optional[ViewProfile] = None,
        progress: bool = True,
    ) -> List[GenerationResult]:
        """Generate report cards for many students, collecting failures"""
        output_dir = Path(output_dir)
        report_cards = list(report_cards)
        results = []

        iterator = tqdm(report_cards, desc="Generating", unit="report card") if progress else report_cards
        for card in iterator:
            output_path = output_dir / output_filename(card)
            try:
                self.generate(card, profile, output_path)
                results.append(GenerationResult(card.student_id, card.name, True, str(output_path), None))
            except Exception as e:
                logger.error(f"  ❌ Failed for {card.student_id}: {e}")
                results.append(GenerationResult(card.student_id, card.name, False, None, str(e)))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Generated {succeeded}/{len(results)} report cards into {output_dir}")
        return results


def output_filename(report_card: ReportCard) -> str:
    """<student id>_<Name_With_Underscores>_report_card.html"""
    clean_name = re.sub(r"[^A-Za-z0-9]+", "_", report_card.name).strip("_") or "student"
    return f"{report_card.student_id}_{clean_name}_report_card.html"
