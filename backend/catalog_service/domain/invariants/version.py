from catalog_service.domain.exceptions import InvariantViolation

def assert_single_draft(versions):
    drafts = [v.id for v in versions if v.status == "draft"]
    if len(drafts) > 1:
        raise InvariantViolation(
            f"At most one draft version is allowed, found {len(drafts)}: {drafts}"
        )

def assert_version_numbers(versions):
    numbers = [v.version_number for v in versions]
    if len(numbers) != len(set(numbers)):
        raise InvariantViolation(f"Version numbers must be unique: {numbers}")
    if any(n < 1 for n in numbers):
        raise InvariantViolation(f"Version numbers must be positive: {numbers}")

def assert_versions(versions):
    versions = list(versions)
    assert_single_draft(versions)
    assert_version_numbers(versions)
