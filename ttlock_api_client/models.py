"""
Typed models for TTLock API responses.

Field names follow Python conventions; the camelCase names used on the
wire are declared as aliases so that ``Model.model_validate(payload)``
accepts the raw JSON body.  Unknown fields are ignored, and the
``errcode``/``errmsg`` envelope is checked before a model is built.
"""

from __future__ import annotations

from enum import IntEnum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from .credentials import Credential
from .features import LockFeature, has_feature


class PasscodeType(IntEnum):
    """``keyboardPwdType`` values for random passcodes."""

    ONE_TIME = 1
    PERMANENT = 2
    PERIOD = 3
    DELETE = 4
    WEEKEND_CYCLIC = 5
    DAILY_CYCLIC = 6
    WORKDAY_CYCLIC = 7
    MONDAY_CYCLIC = 8
    TUESDAY_CYCLIC = 9
    WEDNESDAY_CYCLIC = 10
    THURSDAY_CYCLIC = 11
    FRIDAY_CYCLIC = 12
    SATURDAY_CYCLIC = 13
    SUNDAY_CYCLIC = 14


class TTLockModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", protected_namespaces=()
    )


class TokenResponse(TTLockModel):
    """Body returned by ``/oauth2/token``."""

    access_token: str
    refresh_token: str
    uid: int = 0
    expires_in: int = 0

    def to_credential(self) -> Credential:
        return Credential(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            uid=self.uid,
        )


class Lock(TTLockModel):
    lock_id: int = Field(alias="lockId")
    lock_name: str = Field("", alias="lockName")
    lock_alias: str = Field("", alias="lockAlias")
    lock_mac: str = Field("", alias="lockMac")
    electric_quantity: int = Field(0, alias="electricQuantity")
    feature_value: str = Field("", alias="featureValue")
    has_gateway: int = Field(0, alias="hasGateway")
    lock_data: str = Field("", alias="lockData")
    group_id: int = Field(0, alias="groupId")
    group_name: str = Field("", alias="groupName")
    date: int = 0

    def supports(self, feature: LockFeature) -> bool:
        return has_feature(self.feature_value, feature)


class LockDetail(TTLockModel):
    lock_id: int = Field(alias="lockId")
    lock_name: str = Field("", alias="lockName")
    lock_alias: str = Field("", alias="lockAlias")
    lock_mac: str = Field("", alias="lockMac")
    no_key_pwd: str = Field("", alias="noKeyPwd")
    electric_quantity: int = Field(0, alias="electricQuantity")
    feature_value: str = Field("", alias="featureValue")
    timezone_raw_offset: int = Field(0, alias="timezoneRawOffset")
    model_num: str = Field("", alias="modelNum")
    hardware_revision: str = Field("", alias="hardwareRevision")
    firmware_revision: str = Field("", alias="firmwareRevision")
    # -1 disables auto lock
    auto_lock_time: int = Field(0, alias="autoLockTime")
    lock_sound: int = Field(0, alias="lockSound")
    privacy_lock: int = Field(0, alias="privacyLock")
    tamper_alert: int = Field(0, alias="tamperAlert")
    reset_button: int = Field(0, alias="resetButton")
    open_direction: int = Field(0, alias="openDirection")
    passage_mode: int = Field(0, alias="passageMode")
    passage_mode_auto_unlock: int = Field(0, alias="passageModeAutoUnlock")
    date: int = 0

    def supports(self, feature: LockFeature) -> bool:
        return has_feature(self.feature_value, feature)


class Passcode(TTLockModel):
    keyboard_pwd_id: int = Field(alias="keyboardPwdId")
    lock_id: int = Field(0, alias="lockId")
    keyboard_pwd: str = Field("", alias="keyboardPwd")
    keyboard_pwd_name: str = Field("", alias="keyboardPwdName")
    keyboard_pwd_type: int = Field(0, alias="keyboardPwdType")
    start_date: int = Field(0, alias="startDate")
    end_date: int = Field(0, alias="endDate")
    send_date: int = Field(0, alias="sendDate")
    is_custom: int = Field(0, alias="isCustom")
    sender_username: str = Field("", alias="senderUsername")


class RandomPasscode(TTLockModel):
    keyboard_pwd: str = Field(alias="keyboardPwd")
    keyboard_pwd_id: int = Field(0, alias="keyboardPwdId")


class SentKey(TTLockModel):
    key_id: int = Field(alias="keyId")


class Page(TTLockModel):
    page_no: int = Field(0, alias="pageNo")
    page_size: int = Field(0, alias="pageSize")
    pages: int = 0
    total: int = 0


class LockList(Page):
    items: List[Lock] = Field(default_factory=list, alias="list")


class PasscodeList(Page):
    items: List[Passcode] = Field(default_factory=list, alias="list")
