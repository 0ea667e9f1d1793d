import json
import logging

from django.contrib.auth.decorators import login_required, user_passes_test
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from .models import AuditLog, Notification
from .permissions import is_system_admin
from .services import AVAILABLE_TASKS, BackupOrchestrator, MaintenanceRunner, MetricsCollector, remember_health
from .tasks import run_backup
from .utils import format_bytes

logger = logging.getLogger(__name__)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def _request_data(request):
    if request.content_type == 'application/json':
        try:
            return json.loads(request.body or b'{}')
        except ValueError:
            return None
    return request.POST


@login_required
@user_passes_test(is_system_admin)
@require_GET
def system_status(request):
    """Health report plus a metrics snapshot"""
    report = remember_health()
    snapshot = MetricsCollector().collect()

    return JsonResponse({
        'status': 'success',
        'health': report.to_dict(),
        'metrics': snapshot.to_dict(),
        'metrics_display': {
            'memory_current': format_bytes(snapshot.memory['current']),
            'disk_free': format_bytes(snapshot.disk['free']),
            'disk_total': format_bytes(snapshot.disk['total']),
            'disk_used_percentage': snapshot.disk_used_percentage,
            'database_size': format_bytes(snapshot.database_size),
            'log_size': format_bytes(snapshot.log_size),
        },
    })


@login_required
@user_passes_test(is_system_admin)
@require_GET
def backup_list(request):
    artifacts = BackupOrchestrator().list_artifacts()
    return JsonResponse({
        'status': 'success',
        'backups': [artifact.to_dict() for artifact in artifacts],
    })


@login_required
@user_passes_test(is_system_admin)
@require_POST
def backup_create(request):
    """Queue a backup; the dump and archive run on a worker"""
    data = _request_data(request)
    if data is None:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON body'}, status=400)

    include_database = str(data.get('database', 'true')).lower() in ('1', 'true', 'yes', 'on')
    include_files = str(data.get('files', 'true')).lower() in ('1', 'true', 'yes', 'on')
    if not include_database and not include_files:
        return JsonResponse({'status': 'error', 'message': 'Nothing to back up'}, status=400)

    try:
        result = run_backup.delay(
            name=data.get('name') or None,
            include_database=include_database,
            include_files=include_files,
            user_id=request.user.pk,
        )
    except Exception as e:
        logger.error(f"Could not queue backup: {e}", exc_info=True)
        return JsonResponse({'status': 'error', 'message': 'Could not queue backup'}, status=503)

    logger.info(f"Backup queued by {request.user} (task {result.id})")
    return JsonResponse({'status': 'queued', 'task_id': result.id}, status=202)


@login_required
@user_passes_test(is_system_admin)
@require_POST
def run_maintenance(request):
    data = _request_data(request)
    if data is None:
        return JsonResponse({'status': 'error', 'message': 'Invalid JSON body'}, status=400)

    tasks = data.getlist('tasks') if hasattr(data, 'getlist') else data.get('tasks') or []
    if isinstance(tasks, str):
        tasks = [tasks]
    tasks = [name.strip() for task in tasks for name in task.split(',') if name.strip()]
    if not tasks:
        return JsonResponse({
            'status': 'error',
            'message': 'No tasks given',
            'available_tasks': AVAILABLE_TASKS,
        }, status=400)

    results = MaintenanceRunner().run(tasks)
    AuditLog.log_action(
        user=request.user,
        action='MAINTENANCE',
        model_name='System',
        details={name: result.to_dict() for name, result in results.items()},
        ip_address=_client_ip(request),
    )

    all_ok = all(result.status for result in results.values())
    return JsonResponse({
        'status': 'success' if all_ok else 'partial',
        'results': {name: result.to_dict() for name, result in results.items()},
    })


@login_required
@require_POST
def mark_notification_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, recipient=request.user)
    if not notification.mark_as_read():
        return JsonResponse({'status': 'already_read'})
    return JsonResponse({
        'status': 'success',
        'unread_count': Notification.get_unread_count_for_user(request.user),
    })
