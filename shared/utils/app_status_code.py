class AppStatusCode:
    # Success
    DATA_RETRIEVED_SUCCESSFULLY = "100"
    OPERATION_SUCCESSFUL = "101"
    CREATED_SUCCESSFULLY = "102"
    UPDATED_SUCCESSFULLY = "103"
    DELETED_SUCCESSFULLY = "104"

    # Generic failures
    OPERATION_FAILED = "200"
    OPERATION_ERROR = "201"
    INVALID_INPUT = "202"
    REQUIRED_VALIDATION_ERROR = "203"
    NOT_FOUND = "204"
    SERVICE_UNAVAILABLE = "205"

    # Authentication / authorization
    AUTHENTICATION_TOKEN_INVALID = "300"
    AUTHENTICATION_TOKEN_EXPIRED = "301"
    UNAUTHORIZED_ACTION = "302"

    # Marketplace rules
    INSUFFICIENT_STOCK = "400"
    INVALID_STATUS_TRANSITION = "401"
    CROSS_VENDOR_ORDER = "402"
