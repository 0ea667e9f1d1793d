"""
Result types shared by the system management services.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from django.db import models
from django.utils import timezone
from django.utils.dateparse import parse_datetime


class HealthStatus(models.TextChoices):
    HEALTHY = 'healthy', 'Healthy'
    WARNING = 'warning', 'Warning'
    CRITICAL = 'critical', 'Critical'


class BackupKind(models.TextChoices):
    DATABASE = 'database', 'Database'
    FILES = 'files', 'Files'


@dataclass
class ProbeResult:
    passed: bool
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self):
        return {'passed': self.passed, 'message': self.message, 'details': self.details}


@dataclass
class HealthReport:
    """Outcome of one run of every health probe."""

    status: str
    checks: Dict[str, ProbeResult]
    passing: int
    total: int
    percentage: float
    critical_checks: List[str] = field(default_factory=list)
    checked_at: datetime = field(default_factory=timezone.now)

    @property
    def is_healthy(self):
        return self.status == HealthStatus.HEALTHY

    @property
    def is_critical(self):
        return self.status == HealthStatus.CRITICAL

    def failed_checks(self):
        return [name for name, result in self.checks.items() if not result.passed]

    def failed_critical_checks(self):
        return [name for name in self.failed_checks() if name in self.critical_checks]

    def failed_critical_results(self):
        """(name, ProbeResult) pairs for the failed critical checks, for templates"""
        return [(name, self.checks[name]) for name in self.failed_critical_checks()]

    def to_dict(self):
        return {
            'status': str(self.status),
            'checks': {name: result.to_dict() for name, result in self.checks.items()},
            'passing': self.passing,
            'total': self.total,
            'percentage': self.percentage,
            'critical_checks': list(self.critical_checks),
            'checked_at': self.checked_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data):
        checked_at = parse_datetime(data['checked_at']) if data.get('checked_at') else timezone.now()
        return cls(
            status=data['status'],
            checks={
                name: ProbeResult(
                    passed=check['passed'],
                    message=check['message'],
                    details=check.get('details', {}),
                )
                for name, check in data['checks'].items()
            },
            passing=data['passing'],
            total=data['total'],
            percentage=data['percentage'],
            critical_checks=list(data.get('critical_checks', [])),
            checked_at=checked_at,
        )


@dataclass
class TaskResult:
    status: bool
    message: str
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class BackupArtifact:
    name: str
    kind: str
    path: Path
    created_at: datetime

    @property
    def size(self):
        try:
            return self.path.stat().st_size
        except OSError:
            return 0

    def to_dict(self):
        return {
            'name': self.name,
            'kind': str(self.kind),
            'path': str(self.path),
            'created_at': self.created_at.isoformat(),
            'size': self.size,
        }


@dataclass
class MetricsSnapshot:
    memory: Dict[str, int]
    disk: Dict[str, int]
    database_size: int
    log_size: int

    @property
    def disk_used_percentage(self):
        total = self.disk.get('total', 0)
        if not total:
            return 0.0
        return round((total - self.disk.get('free', 0)) / total * 100, 2)

    def to_dict(self):
        return asdict(self)
