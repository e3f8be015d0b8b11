from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from .models import Tenancy
from .services import TenancyService


@admin.register(Tenancy)
class TenancyAdmin(admin.ModelAdmin):
    list_display = (
        "tenant", "unit", "agreement_status",
        "start_date", "end_date", "rent_amount",
    )
    list_filter = ("agreement_status", "unit__building")
    search_fields = (
        "tenant__username", "tenant__email",
        "unit__unit_number", "unit__building__name",
    )
    readonly_fields = ("executed_at", "created_at", "updated_at")
    actions = ["execute_selected"]

    fieldsets = (
        ("Core Information", {
            "fields": (
                "unit", "tenant", "agreement_status",
                "start_date", "end_date", "executed_at",
            )
        }),
        ("Rent & Deposits", {
            "fields": ("rent_amount", "security_deposit"),
        }),
        ("Move-In/Out", {
            "fields": (
                "move_in_date", "move_out_date",
                "notice_period_days", "termination_reason",
            ),
            "classes": ("collapse",),
        }),
        ("Notes & Metadata", {
            "fields": ("notes", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    @admin.action(description="Execute selected pending tenancies")
    def execute_selected(self, request, queryset):
        executed = 0
        for tenancy in queryset.filter(agreement_status=Tenancy.PENDING):
            try:
                TenancyService.execute(tenancy, executed_by=request.user)
                executed += 1
            except ValidationError as exc:
                self.message_user(
                    request, f"{tenancy}: {'; '.join(exc.messages)}", level=messages.ERROR
                )
        self.message_user(request, f"Executed {executed} tenancies.")
