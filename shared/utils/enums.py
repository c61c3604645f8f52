from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
