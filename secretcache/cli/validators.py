"""Input validation for CLI arguments."""
import re
import sys

# Allowed secret name characters per backend
SECRET_NAME_PATTERNS = {
    "gcp": (r'^[a-zA-Z0-9_-]+$', "letters, numbers, underscores (_), hyphens (-)"),
    "aws": (r'^[A-Za-z0-9/_+=.@-]+$', "letters, numbers and / _ + = . @ -"),
}


def validate_secret_name(name: str, backend_type: str = "gcp") -> None:
    """
    Validate secret name matches the backend's naming rules.

    Args:
        name: Secret name to validate
        backend_type: "gcp" or "aws"

    Raises:
        SystemExit with code 2 if validation fails
    """
    pattern, allowed = SECRET_NAME_PATTERNS[backend_type]

    if not name:
        print("Error: Secret name cannot be empty", file=sys.stderr)
        print(f"\nAllowed characters: {allowed}", file=sys.stderr)
        sys.exit(2)

    if not re.match(pattern, name):
        print(f"Error: Invalid secret name '{name}' for {backend_type} backend", file=sys.stderr)
        print(f"\nAllowed characters: {allowed}", file=sys.stderr)
        sys.exit(2)
