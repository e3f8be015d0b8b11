from django.contrib import admin

from .models import JobLock, JobRun, Payment, RentCycle, RevenueSnapshot


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("tenancy", "payment_type", "amount", "due_date", "status", "payment_date")
    list_filter = ("status", "payment_type", "payment_method")
    search_fields = (
        "transaction_id", "tenancy__tenant__username",
        "tenancy__unit__unit_number", "tenancy__unit__building__name",
    )
    date_hierarchy = "due_date"
    raw_id_fields = ("tenancy",)


@admin.register(RentCycle)
class RentCycleAdmin(admin.ModelAdmin):
    list_display = (
        "tenancy", "cycle_month", "cycle_year",
        "rent_amount", "paid_amount", "payment_status", "due_date",
    )
    list_filter = ("payment_status", "cycle_year", "cycle_month")
    search_fields = ("tenancy__tenant__username", "tenancy__unit__unit_number")
    raw_id_fields = ("tenancy", "payment")


@admin.register(JobRun)
class JobRunAdmin(admin.ModelAdmin):
    list_display = (
        "job_name", "trigger", "cycle_month", "cycle_year", "status",
        "started_at", "duration_ms", "payments_created", "failed_count",
    )
    list_filter = ("job_name", "status", "trigger")
    readonly_fields = [f.name for f in JobRun._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(JobLock)
class JobLockAdmin(admin.ModelAdmin):
    list_display = ("name", "is_locked", "owner", "acquired_at", "expires_at")
    readonly_fields = ("owner", "acquired_at")


@admin.register(RevenueSnapshot)
class RevenueSnapshotAdmin(admin.ModelAdmin):
    list_display = (
        "building", "snapshot_month", "snapshot_year",
        "total_rent_due", "total_rent_collected", "collection_rate",
    )
    list_filter = ("building", "snapshot_year")
