from enum import Enum


class Channel(str, Enum):
    EMAIL_USER = "email_user"
    EMAIL_ADMIN = "email_admin"
    REALTIME_USER = "realtime_user"
    REALTIME_ADMIN = "realtime_admin"
