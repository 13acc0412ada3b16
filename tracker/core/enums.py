from enum import Enum


class SourceType(str, Enum):
    imei = "imei"
    phone_number = "phoneNumber"


class RequestStatus(str, Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"
    completed = "Completed"


class PaymentMethod(str, Enum):
    crypto = "Crypto"
    nagad = "Nagad"


class AdminRole(str, Enum):
    superadmin = "superadmin"
    moderator = "moderator"


class ServiceKey(str, Enum):
    imei_to_number = "imeiToNumber"
    number_to_location = "numberToLocation"
    number_to_nid = "numberToNID"
    number_to_call_list_3_months = "numberToCallList3Months"
    number_to_call_list_6_months = "numberToCallList6Months"


class DataCategory(str, Enum):
    number = "number"
    location = "location"
    nid = "nid"
    call_list_3_months = "callList3Months"
    call_list_6_months = "callList6Months"
