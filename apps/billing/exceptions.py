class DataIntegrityWarning(UserWarning):
    """A record violates an invariant the engine relies on. Logged, never raised to callers."""

    def __init__(self, message, record_id=None):
        super().__init__(message)
        self.record_id = record_id


class TenancyBillingError(Exception):
    """Creating the rent records for one tenancy failed."""

    def __init__(self, tenancy_id, message):
        super().__init__(f"Tenancy {tenancy_id}: {message}")
        self.tenancy_id = tenancy_id


class RunLevelFailure(Exception):
    """A rent generation run could not proceed as a whole."""

    def __init__(self, message, job_run_id=None):
        super().__init__(message)
        self.job_run_id = job_run_id
