from django.contrib import admin

from .models import CalendarExtraction, CourtCalendar, CourtHoliday, CourtSuspension, Holiday


@admin.register(Holiday)
class HolidayAdmin(admin.ModelAdmin):
    list_display = ('data', 'nome', 'tipo', 'uf')
    list_filter = ('tipo', 'uf')
    date_hierarchy = 'data'


class CourtHolidayInline(admin.TabularInline):
    model = CourtHoliday
    extra = 0


class CourtSuspensionInline(admin.TabularInline):
    model = CourtSuspension
    extra = 0


@admin.register(CourtCalendar)
class CourtCalendarAdmin(admin.ModelAdmin):
    list_display = ('tribunal_codigo', 'nome', 'uf')
    search_fields = ('tribunal_codigo', 'nome')
    inlines = [CourtHolidayInline, CourtSuspensionInline]


@admin.register(CalendarExtraction)
class CalendarExtractionAdmin(admin.ModelAdmin):
    list_display = ('filename', 'tribunal_codigo', 'file_type', 'page_count', 'status', 'user', 'created_at')
    list_filter = ('status', 'file_type')
    readonly_fields = ('created_at',)
