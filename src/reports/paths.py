"""Report directory layout under the reflect data dir."""

import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger()

DEFAULT_DATA_DIR = "~/.claude-reflect"

_DAILY_NAME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}\.md$")
_UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*]')


def safe_name(name: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", name)


class ReportPaths:
    """daily/<day>.md, projects/project-summary-<name>.md, daily/backups/."""

    def __init__(self, data_dir: str | Path = DEFAULT_DATA_DIR):
        self.data_dir = Path(data_dir).expanduser()
        self.daily_dir = self.data_dir / "daily"
        self.projects_dir = self.data_dir / "projects"
        self.backup_dir = self.daily_dir / "backups"

    def ensure_dirs(self) -> None:
        for d in (self.daily_dir, self.projects_dir, self.backup_dir):
            d.mkdir(parents=True, exist_ok=True)

    def daily_report_path(self, day: str) -> Path:
        return self.daily_dir / f"{day}.md"

    def project_report_path(self, project_name: str) -> Path:
        return self.projects_dir / f"project-summary-{safe_name(project_name)}.md"

    def daily_report_exists(self, day: str) -> bool:
        return self.daily_report_path(day).exists()

    def list_daily_reports(self, since: Optional[str] = None) -> list[Path]:
        """Daily report files sorted by day, optionally from `since` onwards."""
        if not self.daily_dir.is_dir():
            return []
        reports = []
        for path in self.daily_dir.iterdir():
            if not path.is_file() or not _DAILY_NAME_RE.match(path.name):
                continue
            if since and path.stem < since:
                continue
            reports.append(path)
        return sorted(reports)

    def _backup(self, source: Path, backup_name: str) -> Optional[Path]:
        if not source.exists():
            return None
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        target = self.backup_dir / backup_name
        shutil.copyfile(source, target)
        logger.info("report_backed_up", source=str(source), backup=str(target))
        return target

    def backup_daily(self, day: str) -> Optional[Path]:
        stamp = datetime.now().strftime("%Y%m%d")
        return self._backup(self.daily_report_path(day), f"{day}-backup-{stamp}.md")

    def backup_project(self, project_name: str) -> Optional[Path]:
        stamp = datetime.now().strftime("%Y%m%d")
        return self._backup(
            self.project_report_path(project_name),
            f"project-{safe_name(project_name)}-backup-{stamp}.md",
        )
