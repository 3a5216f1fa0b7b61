from app.economy.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError


class AlreadySubscribedError(ConflictError):
    code = "E_ALREADY_SUBSCRIBED"
    message = "User already has an active package"


class NoActivePackageError(NotFoundError):
    code = "E_NO_ACTIVE_PACKAGE"
    message = "No active package found"


class NoPackageError(NotFoundError):
    code = "E_NO_PACKAGE"
    message = "No package found to renew"


class MustUpgradeToHigherTierError(ForbiddenError):
    code = "E_MUST_UPGRADE_TO_HIGHER_TIER"
    message = "Can only upgrade to a higher tier"


class InvalidPackageTermsError(ValidationError):
    code = "E_INVALID_PACKAGE_TERMS"
    message = "Invalid package tier or duration"


class PackagePriceMismatchError(ValidationError):
    code = "E_PACKAGE_PRICE_MISMATCH"
    message = "Package price does not match the catalog"
