def system_health(request):
    """Expose the health report attached by SystemHealthMiddleware"""
    report = getattr(request, 'system_health', None)
    return {
        'system_health': report,
        'system_alerts': getattr(request, 'system_alerts', []),
        'system_health_critical': bool(report and report.is_critical),
    }
