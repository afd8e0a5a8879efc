# config_manager.py
"""
[V5.0] 报告配置管理器
- 负责 JSON 配置文件 (header 模板 + PDF 样式) 的加载、保存与校验
- 未设置的字段按字段回退到默认值
- 校验错误汇总为一个 ConfigError
"""

import os
import json
import logging
from dataclasses import dataclass, field, asdict, fields
from typing import Dict, Any, List, Optional, Tuple

from models import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_HEADER_TEMPLATE = """{{ location }}, {{ date_from }} - {{ date_to }}
Software Development Acceptance Report

Contractor: {{ executor_name }} ({{ executor_email }})
Recipient: {{ recipient_name }}

Repository: {{ repository_name }}
- Branch {{ branch_name }}

Commit list:"""

RGB = Tuple[int, int, int]


@dataclass
class HeaderConfig:
    """页眉模板及占位符默认值"""

    template: str = DEFAULT_HEADER_TEMPLATE
    executor_name: str = "Some Programmer"
    executor_email: str = "programmer@example.com"
    recipient_name: str = "Client"
    location: str = "Warsaw"


@dataclass
class PDFConfig:
    """PDF 样式：页边距 (mm)、字体、颜色 (RGB 0-255)"""

    margin_top: float = 20.0
    margin_bottom: float = 20.0
    margin_left: float = 20.0
    margin_right: float = 20.0
    font_family: str = "Helvetica"
    font_size: float = 10.0
    header_color: RGB = (0, 0, 0)
    content_color: RGB = (50, 50, 50)


@dataclass
class ReportConfig:
    header: HeaderConfig = field(default_factory=HeaderConfig)
    pdf: PDFConfig = field(default_factory=PDFConfig)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # 元组在 JSON 中以列表表示
        for key in ("header_color", "content_color"):
            data["pdf"][key] = list(data["pdf"][key])
        return data


def default_config() -> ReportConfig:
    return ReportConfig()


def _merge_section(cls, raw: Any, section: str):
    """按字段合并：JSON 中出现的字段覆盖默认值，未知字段忽略"""
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"配置节 '{section}' 必须是 JSON 对象")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        logger.warning(f"⚠️ 配置节 '{section}' 中存在未知字段，已忽略: {unknown}")
    values = {k: v for k, v in raw.items() if k in known}
    return cls(**values)


def config_from_dict(data: Dict[str, Any]) -> ReportConfig:
    if not isinstance(data, dict):
        raise ConfigError("配置文件的顶层必须是 JSON 对象")
    header = _merge_section(HeaderConfig, data.get("header"), "header")
    pdf = _merge_section(PDFConfig, data.get("pdf"), "pdf")
    for key in ("header_color", "content_color"):
        value = getattr(pdf, key)
        if isinstance(value, list):
            setattr(pdf, key, tuple(value))
    return ReportConfig(header=header, pdf=pdf)


def _color_problems(name: str, value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        return [f"{name} 必须是包含 3 个整数的 RGB 数组"]
    problems = []
    for component in value:
        if isinstance(component, bool) or not isinstance(component, int):
            problems.append(f"{name} 的分量必须是整数: {component!r}")
        elif not 0 <= component <= 255:
            problems.append(f"{name} 的分量必须在 0-255 之间: {component}")
    return problems


def validate_config(config: ReportConfig) -> None:
    """校验配置，所有问题汇总到一个 ConfigError 中"""
    problems: List[str] = []

    if not isinstance(config.header.template, str) or not config.header.template.strip():
        problems.append("header.template 不能为空")

    font_size = config.pdf.font_size
    if not isinstance(font_size, (int, float)) or font_size <= 0:
        problems.append(f"pdf.font_size 必须为正数: {font_size!r}")

    for name in ("margin_top", "margin_bottom", "margin_left", "margin_right"):
        value = getattr(config.pdf, name)
        if not isinstance(value, (int, float)) or value < 0:
            problems.append(f"pdf.{name} 不能为负数: {value!r}")

    if not isinstance(config.pdf.font_family, str) or not config.pdf.font_family:
        problems.append("pdf.font_family 不能为空")

    problems += _color_problems("pdf.header_color", config.pdf.header_color)
    problems += _color_problems("pdf.content_color", config.pdf.content_color)

    if problems:
        raise ConfigError("配置无效: " + "; ".join(problems))


def load_config(config_path: Optional[str]) -> ReportConfig:
    """
    加载配置文件。
    - 未提供路径：返回默认配置
    - 路径不存在：ConfigError
    """
    if not config_path:
        logger.info("ℹ️ 未指定配置文件，使用默认配置")
        return default_config()

    if not os.path.exists(config_path):
        raise ConfigError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"无法解析配置文件 {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"无法读取配置文件 {config_path}: {e}") from e

    config = config_from_dict(data)
    validate_config(config)
    logger.info(f"✅ 已加载配置文件: {config_path}")
    return config


def save_config(config: ReportConfig, config_path: str) -> str:
    """保存配置到 JSON 文件 (自动创建目录)"""
    config_dir = os.path.dirname(config_path)
    try:
        if config_dir:
            os.makedirs(config_dir, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigError(f"无法写入配置文件 {config_path}: {e}") from e
    logger.info(f"✅ 配置已保存: {config_path}")
    return config_path
