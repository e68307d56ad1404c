class FieldSizes:
    # Common string lengths
    SHORT = 50
    MEDIUM = 255

    # Specific field sizes
    EMAIL = MEDIUM
    USERNAME = MEDIUM
