class BatchResult:
    """Outcome of a per-item loop: what was written, skipped, or failed."""

    def __init__(self):
        self.succeeded = []
        self.skipped = []
        self.failed = []

    def add_success(self, item):
        self.succeeded.append(item)

    def add_skip(self, item):
        self.skipped.append(item)

    def add_failure(self, item, reason):
        self.failed.append({"item": item, "reason": reason})

    @property
    def success_count(self):
        return len(self.succeeded)

    @property
    def skip_count(self):
        return len(self.skipped)

    @property
    def ok(self):
        return not self.failed

    def to_dict(self):
        return {
            "success_count": self.success_count,
            "skip_count": self.skip_count,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
        }
