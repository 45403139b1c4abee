"""
SMTP 邮件发送

使用标准库 smtplib，在工作线程中执行（asyncio.to_thread），不阻塞事件循环。
未配置账号时不做认证（本地 mailpit 等开发环境）。
"""
from __future__ import annotations

import asyncio
import re
import smtplib
from email.message import EmailMessage
from typing import Optional, Sequence

from loguru import logger

from src.shared.config import EmailConfig

_TAG_RE = re.compile(r"<[^>]*>")


def html_to_text(html: str) -> str:
    """去掉标签得到纯文本备选正文"""
    text = _TAG_RE.sub("", html)
    lines = (line.strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)


class SmtpEmailSender:
    def __init__(self, config: EmailConfig):
        self.config = config

    def _build_message(
        self,
        subject: str,
        html: str,
        extra_recipients: Sequence[str] = (),
    ) -> EmailMessage:
        recipients = [self.config.email_to, *[r for r in extra_recipients if r]]
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.email_from
        message["To"] = ", ".join(dict.fromkeys(recipients))
        message.set_content(html_to_text(html))
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        cfg = self.config
        smtp_cls = smtplib.SMTP_SSL if cfg.smtp_secure else smtplib.SMTP
        with smtp_cls(cfg.smtp_host, cfg.smtp_port, timeout=30) as smtp:
            if cfg.smtp_user and cfg.smtp_password:
                smtp.login(cfg.smtp_user, cfg.smtp_password)
            smtp.send_message(message)

    async def send(
        self,
        subject: str,
        html: str,
        extra_recipients: Optional[Sequence[str]] = None,
    ) -> bool:
        """发送邮件；返回是否成功，失败只记录日志"""
        if not self.config.enabled:
            logger.debug(f"[Email] disabled, skipping: {subject}")
            return False

        message = self._build_message(subject, html, extra_recipients or ())
        try:
            await asyncio.to_thread(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[Email] Failed to send '{subject}': {e}")
            return False

        logger.info(f"[Email] Sent: {subject}")
        return True
