from enum import Enum


class UserRole(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    BROKER = "broker"
    ADMIN = "admin"


SELF_SERVICE_ROLES = {UserRole.TENANT, UserRole.LANDLORD, UserRole.BROKER}


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    VILLA = "villa"
    HOUSE = "house"
    OFFICE = "office"


class ListingType(str, Enum):
    RENT = "rent"
    SALE = "sale"


class PropertyStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    INACTIVE = "inactive"
