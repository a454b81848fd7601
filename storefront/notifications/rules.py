from storefront.notifications.events import OrderEvent
from storefront.notifications.channels import Channel


NOTIFICATION_RULES = {

    OrderEvent.STATUS_CHANGED: {
        Channel.REALTIME_USER: True,
        Channel.REALTIME_ADMIN: True,
    },

    OrderEvent.ORDER_CANCELLED: {
        Channel.EMAIL_USER: True,
        Channel.EMAIL_ADMIN: True,
        Channel.REALTIME_ADMIN: True,
    },

    OrderEvent.RETURN_REQUESTED: {
        Channel.EMAIL_ADMIN: True,
    },

}
