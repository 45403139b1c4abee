"""通知邮件模板加载与渲染（Jinja2）"""
import os
from datetime import date, datetime
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

# 定位到模板目录 (src/infra/email/templates)
TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

UNKNOWN_USER = "Neznámý uživatel"


def format_date(value: Optional[str]) -> str:
    """ISO 日期 -> 捷克格式 d.m.yyyy；无法解析时原样返回"""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return f"{parsed.day}. {parsed.month}. {parsed.year}"


def format_author(author: Any) -> str:
    if author is None:
        return UNKNOWN_USER
    name = f"{author.first_name or ''} {author.last_name or ''}".strip()
    return name or UNKNOWN_USER


def multiline(text: Optional[str]) -> Markup:
    """换行转为 <br>，其余内容先转义"""
    if not text:
        return Markup("")
    return Markup("<br>").join(escape(line) for line in text.split("\n"))


# 初始化 Jinja2 环境
env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "jinja2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
env.filters["format_date"] = format_date
env.filters["format_author"] = format_author
env.filters["multiline"] = multiline


class EmailTemplateLoader:
    @staticmethod
    def render(template_name: str, **kwargs) -> str:
        """渲染指定模板"""
        template = env.get_template(template_name)
        return template.render(**kwargs)
