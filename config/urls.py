from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('accounts.urls')),
    path('prazos/', include('prazos.urls')),
    path('', RedirectView.as_view(pattern_name='prazos:index', permanent=False)),
]
