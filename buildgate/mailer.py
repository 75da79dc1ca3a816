import asyncio
import logging
import smtplib
from email.mime.text import MIMEText

from buildgate.config import Config

logger = logging.getLogger(__name__)


class Mailer:
    """smtplib STARTTLS sender, run in a worker thread"""

    def __init__(self, config: Config):
        self.host = config.smtp_host
        self.port = config.smtp_port
        self.user = config.smtp_user
        self.password = config.smtp_password
        self.from_addr = config.smtp_from or config.smtp_user

    async def send(self, to: list[str], subject: str, body: str):
        if not to:
            logger.info(f"No recipients for '{subject}', not sending")
            return
        await asyncio.to_thread(self._send_sync, to, subject, body)
        logger.info(f"Sent '{subject}' to {', '.join(to)}")

    def _send_sync(self, to: list[str], subject: str, body: str):
        msg = MIMEText(body)
        msg['Subject'] = subject
        msg['From'] = self.from_addr
        msg['To'] = ', '.join(to)

        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password)
            server.sendmail(self.from_addr, to, msg.as_string())
