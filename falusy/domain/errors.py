"""Domain rule violations raised before any remote write."""


class DomainValidationError(ValueError):
    """Base for business-rule failures on user input."""
    pass


class DuplicateProjectNameError(DomainValidationError):
    """Another project of the same user already has this name."""

    def __init__(self, name: str):
        super().__init__(f"Project name already in use: {name}")
        self.name = name


class ProjectLimitReachedError(DomainValidationError):
    """The user's profile caps the number of projects."""

    def __init__(self, limit: int):
        super().__init__(f"Project limit reached ({limit})")
        self.limit = limit


class InvalidUsernameError(DomainValidationError):
    """Username breaks the format rules or is being changed."""
    pass


class UsernameTakenError(DomainValidationError):
    """Username already claimed by another user."""

    def __init__(self, username: str):
        super().__init__(f"Username already taken: {username}")
        self.username = username


class InvalidBackupError(DomainValidationError):
    """Backup text is not JSON or lacks the expected lists."""
    pass


class AdminRequiredError(PermissionError):
    """The acting user is not an administrator."""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} is not an administrator")
        self.user_id = user_id
