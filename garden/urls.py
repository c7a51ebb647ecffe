from django.urls import path
from . import views

urlpatterns = [
    path('', views.dashboard, name='dashboard'),

    path('inventory/', views.inventory, name='inventory'),
    path('inventory/add/', views.seed_form, name='seed_add'),
    path('inventory/<str:seed_id>/', views.seed_detail, name='seed_detail'),
    path('inventory/<str:seed_id>/edit/', views.seed_form, name='seed_edit'),
    path('inventory/<str:seed_id>/delete/', views.seed_delete, name='seed_delete'),

    path('plantings/', views.plantings, name='plantings'),
    path('plantings/add/', views.planting_form, name='planting_add'),
    path('plantings/<str:planting_id>/edit/', views.planting_form, name='planting_edit'),
    path('plantings/<str:planting_id>/delete/', views.planting_delete, name='planting_delete'),

    path('logs/', views.logs, name='logs'),
    path('logs/add/', views.log_form, name='log_add'),
    path('logs/<str:log_id>/edit/', views.log_form, name='log_edit'),
    path('logs/<str:log_id>/delete/', views.log_delete, name='log_delete'),

    path('journal/', views.journal, name='journal'),
    path('journal/add/', views.journal_form, name='journal_add'),
    path('journal/<str:entry_id>/edit/', views.journal_form, name='journal_edit'),
    path('journal/<str:entry_id>/delete/', views.journal_delete, name='journal_delete'),
    path('journal/<str:entry_id>/photos/<str:photo_id>/delete/', views.journal_photo_delete, name='journal_photo_delete'),

    path('schedule/', views.schedule, name='schedule'),
    path('schedule/add/', views.schedule_form, name='schedule_add'),
    path('schedule/<str:task_id>/edit/', views.schedule_form, name='schedule_edit'),
    path('schedule/<str:task_id>/delete/', views.schedule_delete, name='schedule_delete'),
    path('schedule/<str:task_id>/complete/', views.schedule_complete, name='schedule_complete'),

    path('settings/', views.settings_view, name='settings'),
    path('settings/tasks/add/', views.custom_task_add, name='custom_task_add'),
    path('settings/tasks/<str:task_id>/delete/', views.custom_task_delete, name='custom_task_delete'),
    path('settings/theme/', views.theme_update, name='theme_update'),
    path('settings/export/', views.export_view, name='export'),
    path('settings/import/', views.import_view, name='import'),

    path('photos/<str:photo_id>/', views.photo, name='photo'),
]
