"""
Export artifact renderers.

Pure functions turning a case (or a single image) and its detections into the
downloadable artifact:

- raw data: a zip of ``detections.csv``, ``analysis.json`` and ``case.json``
- labelled images: a zip of the images with boxes and stage labels drawn
- PDF report: case details, analysis summary and per-image detection tables

Zip archives are AES encrypted when a password is given; PDFs are encrypted
according to the requested security level.
"""

from __future__ import annotations

import csv
import io
import json
import posixpath
import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

import pyzipper
from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, LEGAL, LETTER
from reportlab.lib.pdfencrypt import StandardEncryption
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from mortiscope.core.database.entities.analysis_results import AnalysisResult
from mortiscope.core.database.entities.cases import Case
from mortiscope.core.database.entities.detections import Detection
from mortiscope.core.database.entities.uploads import Upload
from mortiscope.core.logging_config import get_logger
from mortiscope.core.models.domain.enums import PageSize, SecurityLevel
from mortiscope.core.models.io.exports import PdfPermissions
from mortiscope.server.core import constant

logger = get_logger(__name__)

PAGE_SIZES = {PageSize.a4: A4, PageSize.letter: LETTER, PageSize.legal: LEGAL}

DETECTION_COLUMNS = (
    "image_name",
    "detection_id",
    "label",
    "original_label",
    "confidence",
    "original_confidence",
    "x_min",
    "y_min",
    "x_max",
    "y_max",
    "status",
)

# RGB outline colour per life stage.
STAGE_COLORS: Dict[str, Tuple[int, int, int]] = {
    "instar_1": (59, 130, 246),
    "instar_2": (16, 185, 129),
    "instar_3": (245, 158, 11),
    "pupa": (239, 68, 68),
    "adult": (139, 92, 246),
}


@dataclass
class ExportBundle:
    """Everything an export is rendered from."""

    uploads: List[Upload]
    detections: Dict[str, List[Detection]] = field(default_factory=dict)
    case: Optional[Case] = None
    analysis: Optional[AnalysisResult] = None
    images: Dict[str, bytes] = field(default_factory=dict)

    def detections_of(self, upload_id: str) -> List[Detection]:
        return self.detections.get(upload_id, [])


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, default=_json_default)


def write_archive(files: Dict[str, bytes], password: Optional[str] = None) -> bytes:
    """Zip ``files``; with a password the archive is AES-256 encrypted."""
    buffer = io.BytesIO()
    if password:
        with pyzipper.AESZipFile(buffer, "w", compression=pyzipper.ZIP_DEFLATED, encryption=pyzipper.WZ_AES) as zf:
            zf.setpassword(password.encode("utf-8"))
            for name, data in files.items():
                zf.writestr(name, data)
    else:
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in files.items():
                zf.writestr(name, data)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Raw data
# ---------------------------------------------------------------------------


def detections_csv(bundle: ExportBundle) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(DETECTION_COLUMNS)
    for upload in bundle.uploads:
        for d in bundle.detections_of(upload.id):
            writer.writerow(
                [
                    upload.name,
                    d.id,
                    d.label,
                    d.original_label,
                    d.confidence,
                    d.original_confidence,
                    d.x_min,
                    d.y_min,
                    d.x_max,
                    d.y_max,
                    d.status,
                ]
            )
    return output.getvalue()


def render_raw_data(bundle: ExportBundle, password: Optional[str] = None) -> bytes:
    case_data: Dict[str, Any] = {}
    if bundle.case is not None:
        case_data = bundle.case.model_dump(exclude={"user_id"})
    case_data["images"] = [
        {"id": u.id, "name": u.name, "width": u.width, "height": u.height, "type": u.type} for u in bundle.uploads
    ]
    analysis = bundle.analysis.model_dump() if bundle.analysis is not None else None
    files = {
        "detections.csv": detections_csv(bundle).encode("utf-8"),
        "analysis.json": _dumps(analysis).encode("utf-8"),
        "case.json": _dumps(case_data).encode("utf-8"),
    }
    return write_archive(files, password)


# ---------------------------------------------------------------------------
# Labelled images
# ---------------------------------------------------------------------------


def draw_detections(image: Image.Image, detections: List[Detection]) -> Image.Image:
    """Copy of ``image`` with every detection boxed and labelled."""
    annotated = image.convert("RGB")
    draw = ImageDraw.Draw(annotated)
    font = ImageFont.load_default()
    line_width = max(2, round(min(annotated.size) / 300))
    for d in detections:
        color = STAGE_COLORS.get(d.label, (255, 255, 255))
        box = [(d.x_min, d.y_min), (d.x_max, d.y_max)]
        draw.rectangle(box, outline=color, width=line_width)
        text = constant.STAGE_DISPLAY_NAMES.get(d.label, d.label)
        if d.confidence is not None:
            text = f"{text} {d.confidence * 100:.0f}%"
        left, top, right, bottom = draw.textbbox((d.x_min, d.y_min), text, font=font)
        offset = bottom - top + 4
        draw.rectangle([(left - 2, top - offset - 2), (right + 2, bottom - offset + 2)], fill=color)
        draw.text((d.x_min, d.y_min - offset), text, fill=(255, 255, 255), font=font)
    return annotated


def render_labelled_images(bundle: ExportBundle, resolution: str, password: Optional[str] = None) -> bytes:
    size = constant.EXPORT_RESOLUTIONS[resolution]
    files: Dict[str, bytes] = {}
    for upload in bundle.uploads:
        data = bundle.images.get(upload.id)
        if data is None:
            continue
        try:
            with Image.open(io.BytesIO(data)) as source:
                annotated = draw_detections(source, bundle.detections_of(upload.id))
        except UnidentifiedImageError:
            logger.warning(f"Skipping {upload.key}: image format not readable")
            continue
        fitted = ImageOps.contain(annotated, size)
        out = io.BytesIO()
        fitted.save(out, format="JPEG", quality=90)
        stem, _ = posixpath.splitext(upload.name)
        name = f"{stem}_labelled.jpg"
        if name in files:
            name = f"{stem}_{upload.id[:8]}_labelled.jpg"
        files[name] = out.getvalue()
    return write_archive(files, password)


# ---------------------------------------------------------------------------
# PDF report
# ---------------------------------------------------------------------------


def pdf_encryption(
    security_level: SecurityLevel, password: Optional[str], permissions: Optional[PdfPermissions]
) -> Optional[StandardEncryption]:
    if security_level == SecurityLevel.standard or not password:
        return None
    if security_level == SecurityLevel.view_protected:
        return StandardEncryption(password, ownerPassword=password, strength=128)
    perms = permissions or PdfPermissions()
    return StandardEncryption(
        "",
        ownerPassword=password,
        canPrint=int(perms.printing),
        canModify=int(perms.modifying),
        canCopy=int(perms.copying),
        canAnnotate=int(perms.annotations),
        strength=128,
    )


def _fmt(value: Any, suffix: str = "") -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}{suffix}"
    if isinstance(value, datetime):
        return value.strftime("%B %d, %Y")
    return f"{value}{suffix}"


def _table(rows: List[List[str]], header: bool = True) -> Table:
    table = Table(rows, hAlign="LEFT")
    style = [
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]
    if header:
        style += [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f2937")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ]
    table.setStyle(TableStyle(style))
    return table


def render_pdf(
    bundle: ExportBundle,
    page_size: PageSize = PageSize.a4,
    security_level: SecurityLevel = SecurityLevel.standard,
    password: Optional[str] = None,
    permissions: Optional[PdfPermissions] = None,
) -> bytes:
    styles = getSampleStyleSheet()
    buffer = io.BytesIO()
    title = bundle.case.case_name if bundle.case is not None else "MortiScope Report"
    doc = SimpleDocTemplate(
        buffer,
        pagesize=PAGE_SIZES[page_size],
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=constant.PROJECT_NAME,
        encrypt=pdf_encryption(security_level, password, permissions),
    )

    story: List[Any] = [Paragraph(f"{constant.PROJECT_NAME} Case Report", styles["Title"])]
    case = bundle.case
    if case is not None:
        story += [
            Paragraph("Case Details", styles["Heading2"]),
            _table(
                [
                    ["Case name", case.case_name],
                    ["Case date", _fmt(case.case_date)],
                    ["Temperature", _fmt(case.temperature_celsius, " °C")],
                    [
                        "Location",
                        ", ".join(
                            [case.location_barangay, case.location_city, case.location_province, case.location_region]
                        ),
                    ],
                    ["Notes", case.notes or "-"],
                ],
                header=False,
            ),
            Spacer(1, 6 * mm),
        ]

    analysis = bundle.analysis
    story.append(Paragraph("Analysis Summary", styles["Heading2"]))
    if analysis is None:
        story.append(Paragraph("This case has not been analysed.", styles["Normal"]))
    else:
        counts = analysis.total_counts or {}
        story.append(
            _table(
                [
                    ["Status", analysis.status],
                    ["Oldest stage", constant.STAGE_DISPLAY_NAMES.get(analysis.oldest_stage_detected or "", "-")],
                    ["Estimated PMI", f"{_fmt(analysis.pmi_days, ' days')} ({_fmt(analysis.pmi_hours, ' hours')})"],
                    ["Accumulated degree hours", _fmt(analysis.calculated_adh)],
                    ["Lower developmental threshold", _fmt(analysis.ldt_used, " °C")],
                ]
                + [[constant.STAGE_DISPLAY_NAMES[s], str(counts.get(s, 0))] for s in constant.LIFE_STAGES],
                header=False,
            )
        )
        if analysis.explanation:
            story += [Spacer(1, 3 * mm), Paragraph(escape(analysis.explanation), styles["Normal"])]
    story.append(Spacer(1, 6 * mm))

    story.append(Paragraph("Detections", styles["Heading2"]))
    for upload in bundle.uploads:
        detections = bundle.detections_of(upload.id)
        story.append(Paragraph(f"{escape(upload.name)} ({len(detections)} detection(s))", styles["Heading4"]))
        if not detections:
            continue
        rows = [["Stage", "Confidence", "Box (x1, y1, x2, y2)", "Status"]]
        for d in detections:
            rows.append(
                [
                    constant.STAGE_DISPLAY_NAMES.get(d.label, d.label),
                    "-" if d.confidence is None else f"{d.confidence * 100:.1f}%",
                    f"{d.x_min:.0f}, {d.y_min:.0f}, {d.x_max:.0f}, {d.y_max:.0f}",
                    d.status.replace("_", " "),
                ]
            )
        story += [_table(rows), Spacer(1, 4 * mm)]

    doc.build(story)
    return buffer.getvalue()
