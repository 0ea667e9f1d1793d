"""
Backup orchestration: database dump, files archive and retention cleanup.

Artifacts are plain files in the backup directory named
``{name}_{kind}_{YYYY_MM_DD_HH_mm_ss}.{sql|zip}``. The database dump always
finishes before the archive starts; a failed dump aborts the whole backup.
"""
import fnmatch
import logging
import os
import zipfile
from datetime import datetime, timedelta
from pathlib import Path

from django.conf import settings
from django.utils import timezone

from system_management.exceptions import BackupFailed, CleanupFileError
from .process import ProcessRunner
from .types import BackupArtifact, BackupKind

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y_%m_%d_%H_%M_%S'
ARTIFACT_EXTENSIONS = {BackupKind.DATABASE: 'sql', BackupKind.FILES: 'zip'}

EXCLUDE_PATTERNS = [
    '__pycache__',
    '*.pyc',
    '*.pyo',
    '.git',
    '.DS_Store',
    '*.log',
]


def default_backup_name(now=None):
    now = timezone.localtime(now or timezone.now())
    return f"backup_{now.strftime(TIMESTAMP_FORMAT)}"


class BackupOrchestrator:
    def __init__(self, backup_dir=None, runner=None, database=None, sources=None, timeout=None, user=None):
        self.backup_dir = Path(backup_dir or settings.SYSTEM_BACKUP_DIR)
        self.runner = runner or ProcessRunner()
        self.database = database or settings.DATABASES['default']
        self.sources = sources if sources is not None else settings.SYSTEM_BACKUP_SOURCES
        self.timeout = timeout if timeout is not None else settings.SYSTEM_BACKUP_DUMP_TIMEOUT
        self.user = user

    def backup(self, name=None, include_database=True, include_files=True):
        """Create the requested artifacts, database first. Raises BackupFailed."""
        now = timezone.now()
        name = name or default_backup_name(now)
        self.backup_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Starting backup {name} (database={include_database}, files={include_files})")
        artifacts = []

        if include_database:
            artifacts.append(self.create_database_backup(name, now))

        if include_files:
            artifacts.append(self.create_files_backup(name, now))

        for artifact in artifacts:
            self.log_backup_action(artifact)

        logger.info(f"Backup {name} completed with {len(artifacts)} artifact(s)")
        return artifacts

    def artifact_path(self, name, kind, now):
        stamp = timezone.localtime(now).strftime(TIMESTAMP_FORMAT)
        extension = ARTIFACT_EXTENSIONS[kind]
        path = self.backup_dir / f"{name}_{kind}_{stamp}.{extension}"

        counter = 1
        while path.exists():
            path = self.backup_dir / f"{name}_{kind}_{stamp}_{counter}.{extension}"
            counter += 1
        return path

    # ----- database -----

    def create_database_backup(self, name, now):
        path = self.artifact_path(name, BackupKind.DATABASE, now)
        command, args, env = self.dump_command(path)

        result = self.runner.run(command, args, timeout=self.timeout, env=env)
        if not result.ok:
            self._remove_partial(path)
            raise BackupFailed(
                f"Database backup failed ({command} exited with {result.exit_code})",
                step='database',
                details={'exit_code': result.exit_code, 'output': result.output[-2000:]}
            )

        logger.info(f"Database backup saved: {path.name}")
        return BackupArtifact(name=name, kind=BackupKind.DATABASE, path=path, created_at=now)

    def dump_command(self, path):
        """Return (command, args, env) for the configured engine's dump utility"""
        engine = self.database['ENGINE']
        db_name = str(self.database['NAME'])

        if 'mysql' in engine:
            args = [
                f"--user={self.database.get('USER', '')}",
                f"--host={self.database.get('HOST') or 'localhost'}",
                f"--port={self.database.get('PORT') or '3306'}",
                '--single-transaction',
                '--routines',
                '--triggers',
                f"--result-file={path}",
                db_name,
            ]
            # MYSQL_PWD keeps the password out of the process list
            return 'mysqldump', args, {'MYSQL_PWD': self.database.get('PASSWORD', '')}

        if 'postgresql' in engine:
            args = [
                f"--username={self.database.get('USER', '')}",
                f"--host={self.database.get('HOST') or 'localhost'}",
                f"--port={self.database.get('PORT') or '5432'}",
                '--no-password',
                f"--file={path}",
                db_name,
            ]
            return 'pg_dump', args, {'PGPASSWORD': self.database.get('PASSWORD', '')}

        if 'sqlite3' in engine:
            return 'sqlite3', [db_name, f'.output "{path}"', '.dump'], None

        raise BackupFailed(f"Unsupported database engine: {engine}", step='database')

    # ----- files -----

    def create_files_backup(self, name, now):
        path = self.artifact_path(name, BackupKind.FILES, now)

        try:
            archive = zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED, strict_timestamps=False)
        except OSError as e:
            raise BackupFailed(f"Cannot create zip file: {e}", step='files', details={'path': str(path)})

        try:
            with archive:
                file_count = 0
                for prefix, directory in self.sources.items():
                    file_count += self.add_directory(archive, Path(directory), prefix)
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            self._remove_partial(path)
            raise BackupFailed(f"Files backup failed: {e}", step='files', details={'path': str(path)})

        logger.info(f"Files backup saved: {path.name} ({file_count} files)")
        return BackupArtifact(name=name, kind=BackupKind.FILES, path=path, created_at=now)

    def add_directory(self, archive, directory, prefix):
        if not directory.is_dir():
            logger.debug(f"Skipping missing backup source: {directory}")
            return 0

        backup_dir = self.backup_dir.resolve()
        added = 0
        for root, dirs, files in os.walk(directory):
            dirs[:] = [
                d for d in dirs
                if not self._excluded(d) and (Path(root) / d).resolve() != backup_dir
            ]
            for file_name in files:
                if self._excluded(file_name):
                    continue
                file_path = Path(root) / file_name
                arcname = Path(prefix) / file_path.relative_to(directory)
                archive.write(file_path, arcname.as_posix())
                added += 1
        return added

    def _excluded(self, name):
        return any(fnmatch.fnmatch(name, pattern) for pattern in EXCLUDE_PATTERNS)

    def _remove_partial(self, path):
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial backup {path}: {e}")

    # ----- retention -----

    def artifact_files(self):
        if not self.backup_dir.exists():
            return []
        extensions = {f".{ext}" for ext in ARTIFACT_EXTENSIONS.values()}
        return [
            item for item in self.backup_dir.iterdir()
            if item.is_file() and item.suffix in extensions
        ]

    def cleanup(self, retention_days, now=None):
        """Delete artifacts last modified before now - retention_days. Returns deleted paths."""
        now = now or timezone.now()
        cutoff = (now - timedelta(days=retention_days)).timestamp()
        deleted = []
        errors = []

        for item in self.artifact_files():
            try:
                if item.stat().st_mtime < cutoff:
                    item.unlink()
                    deleted.append(item)
            except OSError as e:
                errors.append(CleanupFileError(item, e))
                continue

        if deleted:
            logger.info(f"Cleaned {len(deleted)} old backups (retention {retention_days} days)")
        if errors:
            logger.warning(f"{len(errors)} backup file(s) could not be deleted")
        return deleted

    def list_artifacts(self):
        """Existing artifacts, newest first"""
        artifacts = []
        for item in self.artifact_files():
            kind = BackupKind.DATABASE if item.suffix == '.sql' else BackupKind.FILES
            marker = f"_{kind}_"
            name = item.stem.rsplit(marker, 1)[0] if marker in item.stem else item.stem
            created_at = datetime.fromtimestamp(item.stat().st_mtime, tz=timezone.get_current_timezone())
            artifacts.append(BackupArtifact(name=name, kind=kind, path=item, created_at=created_at))
        return sorted(artifacts, key=lambda artifact: artifact.created_at, reverse=True)

    def log_backup_action(self, artifact):
        """Record the artifact in the audit log"""
        try:
            from system_management.models import AuditLog

            AuditLog.log_action(
                user=self.user,
                action='SYSTEM_BACKUP',
                model_name='System',
                object_id=artifact.path.name,
                details=artifact.to_dict(),
            )
        except Exception as e:
            logger.warning(f"Failed to log backup action: {e}")
