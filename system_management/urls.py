from django.urls import path

from . import views

app_name = 'system_management'

urlpatterns = [
    path('status/', views.system_status, name='status'),
    path('backups/', views.backup_list, name='backup_list'),
    path('backups/create/', views.backup_create, name='backup_create'),
    path('maintenance/', views.run_maintenance, name='maintenance'),
    path('notifications/<int:pk>/read/', views.mark_notification_read, name='notification_read'),
]
