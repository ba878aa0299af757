"""Domain enumerations and state-transition rules."""

import enum


class UserRole(str, enum.Enum):
    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    EMAIL = "email"
    GOOGLE = "google"


class VehicleType(str, enum.Enum):
    CAR = "car"
    AMBULANCE = "ambulance"
    TRUCK = "truck"
    MOTORCYCLE = "motorcycle"
    BUS = "bus"


class VehicleStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class LuggageSize(str, enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra-large"


class VehicleFeature(str, enum.Enum):
    AC = "AC"
    HEATER = "Heater"
    GPS = "GPS"
    MUSIC_SYSTEM = "Music System"
    WIFI = "WiFi"
    USB_CHARGING = "USB Charging"
    LEATHER_SEATS = "Leather Seats"
    SUNROOF = "Sunroof"
    BACKUP_CAMERA = "Backup Camera"
    BLUETOOTH = "Bluetooth"
    FIRST_AID_KIT = "First Aid Kit"


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# datetime.weekday() index -> Weekday
WEEKDAYS: tuple[Weekday, ...] = tuple(Weekday)


class BookingStatus(str, enum.Enum):
    PENDING = "pending"  # driver hasn't responded yet
    CONFIRMED = "confirmed"  # driver accepted
    REJECTED = "rejected"  # driver declined
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"  # passenger didn't show up


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_BANKING = "mobile_banking"
    WALLET = "wallet"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class CancelledBy(str, enum.Enum):
    USER = "user"
    DRIVER = "driver"
    ADMIN = "admin"


TERMINAL_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {
        BookingStatus.COMPLETED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }
)

# Statuses that hold the vehicle for the conflict window
BLOCKING_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.STARTED}
)

# State machine: maps current status -> set of valid next statuses
BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.CONFIRMED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    },
    BookingStatus.CONFIRMED: {BookingStatus.STARTED, BookingStatus.CANCELLED},
    BookingStatus.STARTED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    **{status: set() for status in TERMINAL_BOOKING_STATUSES},
}
