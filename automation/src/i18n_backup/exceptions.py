class BackupError(Exception):
  pass


class ConfigurationError(BackupError):
  def __init__(self, errors: list[str]):
    self.errors = list(errors)
    super().__init__("; ".join(self.errors))


class DependencyMissing(BackupError):
  pass


class FetchFailure(BackupError):
  pass


class UploadFailure(BackupError):
  pass


class SummaryDeliveryFailure(BackupError):
  pass
