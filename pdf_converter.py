# pdf_converter.py
"""
[V5.0] PDF 报告渲染 (ReportLab)
流程严格线性：字体 -> 页眉 -> 提交表格 -> 汇总 -> 写入文件，任何一步失败都会中止。
分页完全交给 Platypus 的自动分页处理。
"""
import logging
import os
import tempfile
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

import report_builder
from config import GlobalConfig
from config_manager import PDFConfig
from models import RenderError, ReportData

logger = logging.getLogger(__name__)

TITLE_FONT_SIZE = 16
DATE_COL_WIDTH = 30 * mm
SHA_COL_WIDTH = 25 * mm

HEADER_FILL = (220, 220, 220)
ROW_FILLS = ((255, 255, 255), (245, 245, 245))
FOOTER_COLOR = (120, 120, 120)
TABLE_HEADERS = ("Date", "SHA", "Description")

# 内置字体族 -> (常规, 粗体, 斜体)
STANDARD_FONTS = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique"),
    "arial": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique"),
    "times-roman": ("Times-Roman", "Times-Bold", "Times-Italic"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique"),
}


class FontSet(NamedTuple):
    regular: str
    bold: str
    italic: str


def rgb(values: Sequence[int]) -> colors.Color:
    r, g, b = values
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


def row_background(index: int) -> colors.Color:
    """偶数行白色，奇数行浅灰"""
    return rgb(ROW_FILLS[index % 2])


def title_font_size(pdf: PDFConfig) -> float:
    """标题字号始终比正文大"""
    return max(TITLE_FONT_SIZE, pdf.font_size + 6)


def title_offset(text: str, font_name: str, font_size: float, available_width: float) -> float:
    """居中偏移量 = (可用宽度 - 文本宽度) / 2，文本过宽时贴左边"""
    text_width = pdfmetrics.stringWidth(text, font_name, font_size)
    return max((available_width - text_width) / 2.0, 0.0)


def _find_font_file(font_dirs: List[str], candidates: List[str]) -> str:
    for font_dir in font_dirs:
        for name in candidates:
            path = os.path.join(font_dir, name)
            if os.path.isfile(path):
                return path
    raise RenderError(f"字体文件未找到: {candidates[0]} (目录: {', '.join(font_dirs)})")


def register_fonts(family: str, font_dirs: Union[str, List[str]]) -> FontSet:
    """
    注册字体：内置字体族直接使用；
    其他字体族按顺序在 font_dirs 中查找 <family>.ttf / <family>-Bold.ttf / <family>-Oblique.ttf
    """
    builtin = STANDARD_FONTS.get(family.lower())
    if builtin:
        return FontSet(*builtin)

    if isinstance(font_dirs, str):
        font_dirs = [font_dirs]
    paths = (
        _find_font_file(font_dirs, [f"{family}.ttf"]),
        _find_font_file(font_dirs, [f"{family}-Bold.ttf"]),
        _find_font_file(font_dirs, [f"{family}-Oblique.ttf", f"{family}-Italic.ttf"]),
    )
    fonts = FontSet(family, f"{family}-Bold", f"{family}-Oblique")
    registered = set(pdfmetrics.getRegisteredFontNames())
    for name, path in zip(fonts, paths):
        if name in registered:
            continue
        try:
            pdfmetrics.registerFont(TTFont(name, path))
        except Exception as e:
            raise RenderError(f"无法加载字体 {path}: {e}") from e
    pdfmetrics.registerFontFamily(
        family,
        normal=fonts.regular,
        bold=fonts.bold,
        italic=fonts.italic,
        boldItalic=fonts.bold,
    )
    logger.info(f"🔤 已注册字体族: {family}")
    return fonts


def needs_unicode_font(texts: Iterable[str]) -> bool:
    """内置 Type1 字体只覆盖 Latin-1，超出范围的字符需要 TrueType 字体"""
    for text in texts:
        try:
            (text or "").encode("latin-1")
        except UnicodeEncodeError:
            return True
    return False


def report_texts(data: ReportData) -> List[str]:
    header = data.config.header
    texts = [
        header.template,
        header.executor_name,
        header.executor_email,
        header.recipient_name,
        header.location,
        data.repository_name,
        data.repository_path,
        data.branch_name,
        data.author_email,
    ]
    for commit in data.commits:
        texts.extend((commit.title, commit.description))
    return texts


def _markup(text: str) -> str:
    """转义为 Paragraph 标记，并保留换行"""
    return escape(text).replace("\n", "<br/>")


class CenteredLine(Flowable):
    """
    单行文本，按显式计算的偏移量水平居中。
    文本比可用宽度还宽时，改用居中对齐的 Paragraph 自动换行。
    """

    def __init__(self, text: str, font_name: str, font_size: float, color: colors.Color, height: float):
        super().__init__()
        self.text = text
        self.font_name = font_name
        self.font_size = font_size
        self.color = color
        self.line_height = height
        self.height = height
        self.width = 0
        self._paragraph: Optional[Paragraph] = None

    def _wrapped(self) -> Paragraph:
        style = ParagraphStyle(
            "CenteredTitle",
            fontName=self.font_name,
            fontSize=self.font_size,
            leading=self.font_size * 1.25,
            textColor=self.color,
            alignment=TA_CENTER,
        )
        return Paragraph(_markup(self.text), style)

    def wrap(self, avail_width, avail_height):
        self.width = avail_width
        if pdfmetrics.stringWidth(self.text, self.font_name, self.font_size) > avail_width:
            self._paragraph = self._wrapped()
            _, self.height = self._paragraph.wrap(avail_width, avail_height)
        else:
            self._paragraph = None
            self.height = self.line_height
        return avail_width, self.height

    def split(self, avail_width, avail_height):
        if self._paragraph is None:
            return []
        return self._paragraph.split(avail_width, avail_height)

    def draw(self):
        if self._paragraph is not None:
            self._paragraph.drawOn(self.canv, 0, 0)
            return
        x = title_offset(self.text, self.font_name, self.font_size, self.width)
        baseline = (self.height - self.font_size) / 2.0 + 0.2 * self.font_size
        self.canv.setFont(self.font_name, self.font_size)
        self.canv.setFillColor(self.color)
        self.canv.drawString(x, baseline, self.text)


class PDFGenerator:
    """
    (V5.0) PDF 报告生成器
    """

    def __init__(self, global_config: Optional[GlobalConfig] = None):
        self.global_config = global_config or GlobalConfig()
        self.fonts: Optional[FontSet] = None

    # --- 字体 ---
    def select_fonts(self, data: ReportData) -> FontSet:
        """
        注册配置的字体族。
        内置字体族遇到 Latin-1 以外的字符时，自动改用找得到的 Unicode TrueType 字体。
        """
        pdf = data.config.pdf
        font_dirs = self.global_config.font_search_dirs()
        fonts = register_fonts(pdf.font_family, font_dirs)
        if pdf.font_family.lower() not in STANDARD_FONTS or not needs_unicode_font(report_texts(data)):
            return fonts

        family = self.global_config.UNICODE_FONT_FAMILY
        try:
            return register_fonts(family, font_dirs)
        except RenderError as e:
            logger.warning(f"⚠️ 报告包含 Latin-1 以外的字符，但未找到 Unicode 字体 {family}，部分字符可能无法显示: {e}")
            return fonts

    # --- 样式 ---
    def _styles(self, pdf: PDFConfig):
        size = pdf.font_size
        content = rgb(pdf.content_color)
        heading = rgb(pdf.header_color)
        return {
            "body": ParagraphStyle(
                "Body", fontName=self.fonts.regular, fontSize=size,
                leading=size * 1.4, textColor=content,
            ),
            "date": ParagraphStyle(
                "DateLine", fontName=self.fonts.regular, fontSize=size,
                leading=size * 1.4, textColor=heading, spaceAfter=size,
            ),
            "cell": ParagraphStyle(
                "Cell", fontName=self.fonts.regular, fontSize=size,
                leading=size * 1.25, textColor=content,
            ),
            "placeholder": ParagraphStyle(
                "NoCommits", fontName=self.fonts.italic, fontSize=size,
                leading=size * 1.4, textColor=content,
            ),
            "summary_heading": ParagraphStyle(
                "SummaryHeading", fontName=self.fonts.bold, fontSize=size + 1,
                leading=(size + 1) * 1.4, textColor=heading, spaceAfter=2,
            ),
            "footer": ParagraphStyle(
                "Footer", fontName=self.fonts.italic, fontSize=8,
                leading=10, textColor=rgb(FOOTER_COLOR),
            ),
        }

    # --- 各部分 ---
    def build_header(self, data: ReportData, styles, story: list) -> None:
        header = report_builder.render_header(data)
        pdf = data.config.pdf
        size = title_font_size(pdf)

        story.append(Paragraph(_markup(header.date_line), styles["date"]))
        story.append(
            CenteredLine(
                header.title,
                self.fonts.bold,
                size,
                rgb(pdf.header_color),
                height=size * 1.5,
            )
        )
        story.append(Spacer(1, 4 * mm))
        if header.body.strip():
            story.append(Paragraph(_markup(header.body), styles["body"]))
        story.append(Spacer(1, 5 * mm))

    def build_commit_table(self, data: ReportData, styles, story: list, content_width: float) -> None:
        if not data.commits:
            story.append(Paragraph(_markup(report_builder.NO_COMMITS_TEXT), styles["placeholder"]))
            return

        pdf = data.config.pdf
        rows: List[list] = [list(TABLE_HEADERS)]
        for date_str, sha, title, description in report_builder.build_table_rows(data.commits):
            text = _markup(title)
            if description:
                text += "<br/>" + _markup(description)
            rows.append([date_str, sha, Paragraph(text, styles["cell"])])

        style_cmds = [
            ("FONTNAME", (0, 0), (-1, 0), self.fonts.bold),
            ("FONTNAME", (0, 1), (-1, -1), self.fonts.regular),
            ("FONTSIZE", (0, 0), (-1, -1), pdf.font_size),
            ("TEXTCOLOR", (0, 0), (-1, 0), rgb(pdf.header_color)),
            ("TEXTCOLOR", (0, 1), (-1, -1), rgb(pdf.content_color)),
            ("BACKGROUND", (0, 0), (-1, 0), rgb(HEADER_FILL)),
            ("ALIGN", (0, 0), (1, -1), "CENTER"),
            ("ALIGN", (2, 0), (2, 0), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ]
        for index in range(len(data.commits)):
            style_cmds.append(("BACKGROUND", (0, index + 1), (-1, index + 1), row_background(index)))

        table = Table(
            rows,
            colWidths=[DATE_COL_WIDTH, SHA_COL_WIDTH, content_width - DATE_COL_WIDTH - SHA_COL_WIDTH],
            repeatRows=1,
            splitInRow=1,
        )
        table.setStyle(TableStyle(style_cmds))
        story.append(table)

    def build_summary(self, data: ReportData, styles, story: list) -> None:
        story.append(Spacer(1, 8 * mm))
        story.append(Paragraph("Summary:", styles["summary_heading"]))
        for line in report_builder.build_summary_lines(data):
            story.append(Paragraph(_markup(line), styles["body"]))
        story.append(Spacer(1, 6 * mm))
        story.append(Paragraph(_markup(report_builder.generation_timestamp(data)), styles["footer"]))

    # --- 入口 ---
    def generate(self, data: ReportData, output_path: str) -> str:
        """
        生成 PDF 并写入 output_path。
        先写入同目录下的临时文件，成功后再原子替换；失败时删除临时文件，目标路径不会留下残缺文件。
        """
        pdf = data.config.pdf

        # 1. 字体
        self.fonts = self.select_fonts(data)
        styles = self._styles(pdf)

        page_width, page_height = A4
        left, right = pdf.margin_left * mm, pdf.margin_right * mm
        top, bottom = pdf.margin_top * mm, pdf.margin_bottom * mm
        content_width = page_width - left - right
        content_height = page_height - top - bottom
        if content_width <= DATE_COL_WIDTH + SHA_COL_WIDTH or content_height <= 0:
            raise RenderError("页边距过大，页面没有可用的排版空间")

        # 2-4. 页眉、表格、汇总
        story: list = []
        self.build_header(data, styles, story)
        self.build_commit_table(data, styles, story, content_width)
        self.build_summary(data, styles, story)

        # 5. 写入文件
        output_dir = os.path.dirname(os.path.abspath(output_path))
        try:
            os.makedirs(output_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".report_", suffix=".pdf.tmp", dir=output_dir)
            os.close(fd)
        except OSError as e:
            raise RenderError(f"无法创建输出目录 {output_dir}: {e}") from e

        try:
            doc = BaseDocTemplate(
                tmp_path,
                pagesize=A4,
                leftMargin=left,
                rightMargin=right,
                topMargin=top,
                bottomMargin=bottom,
                title=f"{data.repository_name} - {data.date_range.describe()}",
                author=data.author_email,
            )
            frame = Frame(
                left, bottom, content_width, content_height,
                leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0,
                id="content",
            )
            doc.addPageTemplates([PageTemplate(id="report", frames=[frame])])
            doc.build(story)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, output_path)
        except Exception as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise RenderError(f"保存 PDF 失败 ({output_path}): {e}") from e

        logger.info(f"📄 PDF 已生成: {output_path} ({data.total_commits} 个提交)")
        return output_path
