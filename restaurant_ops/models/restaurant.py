from datetime import datetime

from pydantic import BaseModel, ConfigDict

from restaurant_ops.models.enums import BusinessType, Weekday


class DaySchedule(BaseModel):
    open: str = "11:00"
    close: str = "22:00"
    closed: bool = False


class Restaurant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    business_type: BusinessType = BusinessType.RESTAURANT
    total_seats: int | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    parking_info: str | None = None
    accessibility_info: str | None = None
    operating_hours: dict[Weekday, DaySchedule] = {}
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RestaurantCreate(BaseModel):
    name: str
    business_type: BusinessType = BusinessType.RESTAURANT
    total_seats: int | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    parking_info: str | None = None
    accessibility_info: str | None = None
    operating_hours: dict[Weekday, DaySchedule] = {}


class RestaurantUpdate(BaseModel):
    name: str | None = None
    business_type: BusinessType | None = None
    total_seats: int | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    parking_info: str | None = None
    accessibility_info: str | None = None
    operating_hours: dict[Weekday, DaySchedule] | None = None


class CustomMessages(BaseModel):
    welcome: str = "Welcome! How can I help you today?"
    menu_intro: str = "Here's what we're serving:"
    reservation_confirmed: str = "Your reservation is confirmed. See you soon!"
    reservation_reminder: str = "Reminder: you have a reservation with us."


class RestaurantSettings(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str | None = None
    restaurant_id: str
    advance_booking_days: int = 30
    min_party_size: int = 1
    max_party_size: int = 20
    slot_duration_minutes: int = 90
    booking_interval_minutes: int = 15
    send_sms_confirmation: bool = False
    send_email_confirmation: bool = True
    send_reminder: bool = True
    reminder_hours_before: int = 24
    cancellation_hours_before: int = 2
    custom_messages: CustomMessages = CustomMessages()
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SettingsUpdate(BaseModel):
    advance_booking_days: int | None = None
    min_party_size: int | None = None
    max_party_size: int | None = None
    slot_duration_minutes: int | None = None
    booking_interval_minutes: int | None = None
    send_sms_confirmation: bool | None = None
    send_email_confirmation: bool | None = None
    send_reminder: bool | None = None
    reminder_hours_before: int | None = None
    cancellation_hours_before: int | None = None
    custom_messages: CustomMessages | None = None
