from django.urls import path
from . import views

app_name = 'prazos'

urlpatterns = [
    path('', views.index, name='index'),
    path('api/simulate/', views.simulate_api, name='simulate_api'),
    path('calendario/extrair/', views.calendar_extract, name='calendar_extract'),
    path('calendario/extracoes/<int:pk>/importar/', views.calendar_import, name='calendar_import'),
]
