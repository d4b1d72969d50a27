"""Run notification: a summary mail with the run log and transfer list attached."""

from __future__ import annotations

import smtplib
import socket
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import Optional, Protocol, Sequence

from loguru import logger

from .errors import NotifyError
from .models import Credentials, RunSummary
from .summary import count_lines

SUBJECT_PREFIX = "[robomirror]"


class MailTransport(Protocol):
    def send(self, message: EmailMessage) -> None:
        ...


class SmtpTransport:
    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        use_tls: bool = True,
        credentials: Optional[Credentials] = None,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.use_tls = use_tls
        self.credentials = credentials
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if self.credentials is not None:
                    smtp.login(self.credentials.username, self.credentials.secret)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotifyError(f"SMTP delivery via {self.host}:{self.port} failed: {e}") from e


def build_subject(summary: RunSummary, simulate_only: bool, host: str) -> str:
    if summary.has_failures:
        status = f"FAILED: {summary.failed_count} folder(s) failed"
    else:
        status = f"OK: {summary.copied_count} copied, {summary.synced_count} unchanged"
    mode = " [SIMULATION]" if simulate_only else ""
    return f"{SUBJECT_PREFIX}{mode} {status} on {host}"


def build_body(summary: RunSummary, simulate_only: bool, host: str) -> str:
    lines = [f"Folder sync on {host} finished."]
    if simulate_only:
        lines.append("This was a simulation (list-only); nothing was copied.")
    lines.append("")
    lines.extend(count_lines(summary))
    lines.append(f"Items transferred:            {len(summary.transferred_items)}")
    if summary.failed_folders:
        lines.append("")
        lines.append("Failed folders:")
        lines.extend(f"  {folder}" for folder in summary.failed_folders)
    lines.append("")
    lines.append("The run log and the list of transferred items are attached.")
    return "\n".join(lines)


def _attach(message: EmailMessage, path: Path) -> None:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.warning("Attachment skipped, cannot read {p}: {e}", p=path, e=e)
        return
    message.add_attachment(data, maintype="text", subtype="plain", filename=path.name)


class NotificationDispatcher:
    def __init__(
        self,
        transport: MailTransport,
        sender: str,
        recipients: Sequence[str],
        host_label: Optional[str] = None,
    ):
        self.transport = transport
        self.sender = sender
        self.recipients = list(recipients)
        self.host_label = host_label or socket.gethostname()

    def build_message(
        self,
        summary: RunSummary,
        run_log_path: Path,
        transferred_path: Path,
        simulate_only: bool = False,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = build_subject(summary, simulate_only, self.host_label)
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        if summary.has_failures:
            msg["X-Priority"] = "1 (Highest)"
            msg["Importance"] = "High"
        else:
            msg["X-Priority"] = "3 (Normal)"
            msg["Importance"] = "Normal"
        msg.set_content(build_body(summary, simulate_only, self.host_label))
        _attach(msg, run_log_path)
        _attach(msg, transferred_path)
        return msg

    def send(
        self,
        summary: RunSummary,
        run_log_path: Path,
        transferred_path: Path,
        simulate_only: bool = False,
    ) -> None:
        if not self.recipients:
            raise NotifyError("No notification recipients configured.")
        msg = self.build_message(summary, run_log_path, transferred_path, simulate_only)
        try:
            self.transport.send(msg)
        except NotifyError:
            raise
        except Exception as e:
            raise NotifyError(f"Notification transport failed: {e}") from e
        logger.info("Notification sent to {to}: {subject}", to=msg["To"], subject=msg["Subject"])
