"""
EmailNotifier — outcome reports by SMTP.

Each message is a plain-text body naming the program, the host, and the
exact command to re-run, plus attachments:
- workflow-log.txt: the accumulated log (or buffered text)
- laneBarcode.html: analysis report, on analysis completion when found

Send failures are written to the workflow log and reported as False. They
never change the workflow's outcome.
"""

import logging
import smtplib
import socket
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional, Tuple

from ..logs import LogRecorder
from ..settings import WorkflowSettings
from .base import Notifier
from .errors import NotificationError
from .recipients import ensure_recipients_file, load_recipients

logger = logging.getLogger(__name__)

LOG_ATTACHMENT_NAME = "workflow-log.txt"

# (filename, maintype, subtype, content)
Attachment = Tuple[str, str, str, bytes]


class EmailNotifier(Notifier):
    """
    SMTP-backed notifier.

    Args:
        settings: SMTP host/port, sender, recipients file
        log: Recorder that receives send confirmations and errors
        program_name: Name shown in subjects and bodies
        program_path: Command shown in re-run instructions
    """

    def __init__(
        self,
        settings: WorkflowSettings,
        log: LogRecorder,
        program_name: str = "runwatch",
        program_path: str = "runwatch",
    ):
        self.settings = settings
        self.log = log
        self.program_name = program_name
        self.program_path = program_path
        self.hostname = socket.gethostname()

    # ------------------------------------------------------------------
    # Notifier interface
    # ------------------------------------------------------------------

    def analysis_complete(
        self,
        run_folder: Path,
        log_text: str,
        report: Optional[Path] = None,
    ) -> bool:
        attachments = [self._log_attachment(log_text)]
        report_note = ""
        if report is not None:
            try:
                attachments.append(
                    ("laneBarcode.html", "text", "html", report.read_bytes())
                )
                report_note = ', along with "laneBarcode.html"'
            except OSError as e:
                self.log.line(f"Could not attach report {report}: {e}")

        body = (
            f"{self._greeting()}"
            "An analysis has just been completed, using the data in the following run folder:\n\n"
            f"{run_folder}\n\n"
            f'The log from the run is attached as "{LOG_ATTACHMENT_NAME}"{report_note}.\n\n'
            "If everything looks good, you can deliver the files to the client by running\n"
            "the following command:\n\n"
            f"sudo {self.program_path} deliver {run_folder}\n\n"
            f"{self._signoff()}"
        )
        return self._dispatch(
            f"Completed analysis by {self.program_name} on {self.hostname}",
            body,
            attachments,
        )

    def failure(
        self,
        message: str,
        action: str,
        run_folder: Path,
        log_text: str,
    ) -> bool:
        body = (
            f"{self._greeting()}"
            "I am writing to report that something went wrong.\n\n"
            "Here is a short summary of what happened:\n\n"
            f"> {message}\n\n"
            f'The log is attached as "{LOG_ATTACHMENT_NAME}".\n\n'
            "When you have a moment, please investigate. To re-run the workflow, "
            "use the following command:\n\n"
            f"{self.program_path} {action} {run_folder}\n\n"
            f"{self._signoff()}"
        )
        return self._dispatch(
            f"Something went wrong with {self.program_name} on {self.hostname}",
            body,
            [self._log_attachment(log_text)],
        )

    def delivery_manual(self, project_dir: Path) -> bool:
        body = (
            f"{self._greeting()}"
            "I tried to deliver Project results to someone, but the associated "
            "username does not have a local account.\n\n"
            "The Project directory can be found here:\n\n"
            f"{project_dir}\n\n"
            "Please contact the user and arrange to deliver the results to them.\n\n"
            f"{self._signoff()}"
        )
        return self._dispatch(
            f"Project results ready for manual delivery (from {self.program_name} on {self.hostname})",
            body,
            [],
        )

    def delivery_complete(self, project_dir: Path, destination: Path) -> bool:
        body = (
            f"{self._greeting()}"
            "I have successfully delivered Project results!\n\n"
            "I copied files from the following Project directory:\n\n"
            f"{project_dir}\n\n"
            "The files have been copied to the following location:\n\n"
            f"{destination}\n\n"
            "Please pull whatever other reports are needed, and let the user know "
            "that their files are ready.\n\n"
            f"{self._signoff()}"
        )
        return self._dispatch(
            f"Project results delivered! (from {self.program_name} on {self.hostname})",
            body,
            [],
        )

    def delivery_problem(
        self,
        run_folder: Path,
        project_dir: Path,
        destination: Optional[Path],
        log_text: str,
    ) -> bool:
        body = (
            f"{self._greeting()}"
            "I was attempting a delivery, but that delivery failed.\n\n"
            "I tried copying the following Project directory:\n\n"
            f"{project_dir}\n\n"
            "I tried copying to the following location:\n\n"
            f"{destination if destination is not None else '(no destination was created)'}\n\n"
            "Anything already copied has been left in place for inspection.\n"
            f'The log is attached as "{LOG_ATTACHMENT_NAME}".\n\n'
            "When you have a moment, please investigate. To re-run the delivery, "
            "use the following command:\n\n"
            f"sudo {self.program_path} deliver {run_folder}\n\n"
            f"{self._signoff()}"
        )
        return self._dispatch(
            f"Something went wrong with {self.program_name} on {self.hostname}",
            body,
            [self._log_attachment(log_text)],
        )

    # ------------------------------------------------------------------
    # Composition and transport
    # ------------------------------------------------------------------

    def _greeting(self) -> str:
        return f"Hello!\n\nThis is {self.program_name}, running on {self.hostname}.\n\n"

    def _signoff(self) -> str:
        return (
            "If you still need assistance, please forward this mail (with attachments) "
            f"to {self.settings.support_contact}.\n\n"
            f"~ {self.program_name}\n"
        )

    def _log_attachment(self, log_text: str) -> Attachment:
        return (LOG_ATTACHMENT_NAME, "text", "plain", log_text.encode("utf-8"))

    def build_message(
        self,
        subject: str,
        body: str,
        recipients: List[str],
        attachments: List[Attachment],
    ) -> EmailMessage:
        """Compose a message without sending it."""
        message = EmailMessage()
        message["From"] = self.settings.mail_from
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)
        for filename, maintype, subtype, content in attachments:
            message.add_attachment(
                content, maintype=maintype, subtype=subtype, filename=filename
            )
        return message

    def _send(self, subject: str, body: str, attachments: List[Attachment]) -> None:
        recipients_path = Path(self.settings.recipients_file)
        if ensure_recipients_file(recipients_path):
            self.log.line(f"Missing {recipients_path}. Created a template.")

        recipients = load_recipients(recipients_path)
        if not recipients:
            raise NotificationError(f"No recipients listed in {recipients_path}")

        message = self.build_message(subject, body, recipients, attachments)
        payload_size = len(message.as_bytes())
        self.log.line(
            f"Sending a {payload_size}-byte email to {', '.join(recipients)}"
        )

        try:
            with smtplib.SMTP(
                self.settings.smtp_host, self.settings.smtp_port, timeout=60
            ) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Error sending email: {e}") from e

    def _dispatch(self, subject: str, body: str, attachments: List[Attachment]) -> bool:
        try:
            self._send(subject, body, attachments)
        except NotificationError as e:
            self.log.line(str(e))
            logger.warning(f"Notification not sent ({subject}): {e}")
            return False
        return True
