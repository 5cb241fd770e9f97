"""
Decoding of the lock ``featureValue`` bitfield.

TTLock reports the capabilities of a lock as a hexadecimal string in
which bit *n* is set when the lock supports feature *n*.  The string can
be wider than 64 bits, so it is parsed as an arbitrary precision integer.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Union


class LockFeature(IntEnum):
    """Bit positions in the lock ``featureValue`` string."""

    PASSCODE = 0
    IC_CARD = 1
    FINGERPRINT = 2
    WRISTBAND = 3
    AUTO_LOCK = 4
    PASSCODE_DELETE = 5
    FIRMWARE_UPGRADE = 6
    PASSCODE_MANAGEMENT = 7
    LOCK_COMMAND = 8
    PASSCODE_VISIBLE = 9
    GATEWAY_UNLOCK = 10
    FREEZE = 11
    CYCLIC_PASSCODE = 12
    DOOR_SENSOR = 13
    REMOTE_UNLOCK_CONFIG = 14
    AUDIO_MANAGEMENT = 15
    NB = 16
    # bit 17 is deprecated
    ADMIN_PASSCODE = 18
    HOTEL_CARD = 19
    NO_CLOCK_CHIP = 20
    NO_BROADCAST = 21
    PASSAGE_MODE = 22
    TURN_OFF_AUTO_LOCK = 23
    WIRELESS_KEYPAD = 24
    LIGHT_TIME = 25
    HOTEL_CARD_BLACKLIST = 26
    IDENTITY_CARD = 27
    TAMPER_ALERT = 28
    RESET_BUTTON = 29
    PRIVACY_LOCK = 30
    # bit 31 is reserved
    DEAD_LOCK = 32
    PASSAGE_MODE_EXCEPTION = 33
    CYCLIC_IC_OR_FINGERPRINT = 34
    PRIVACY_MODE = 35
    LEFT_RIGHT_OPEN = 36
    FINGER_VEIN = 37
    TELINK_BLUETOOTH = 38
    NB_ACTIVATION = 39
    RECOVER_CYCLIC_PASSCODE = 40
    WIRELESS_KEY = 41
    ACCESSORY_BATTERY = 42
    SOUND_VOLUME_LANGUAGE = 43
    QR_CODE = 44
    DOOR_SENSOR_STATE = 45
    PASSAGE_MODE_AUTO_UNLOCK = 46
    FINGERPRINT_DISTRIBUTION = 47
    ZHONGZHENG_FINGERPRINT = 48
    SHENGYUAN_FINGERPRINT = 49
    WIRELESS_DOOR_SENSOR = 50
    DOOR_UNCLOSED_ALARM = 51
    PROXIMITY_SENSOR = 52
    FACE_3D = 53
    AUTO_LOCK_PAIRING = 54
    CPU_CARD = 55
    WIFI = 56
    WIFI_STATIC_IP = 58
    INCOMPLETE_PASSCODE = 60
    DOUBLE_AUTH = 63
    XIONGMAI_VIDEO = 67
    ZHIAN_FACE = 69
    PALM_VEIN = 70
    ONE_TIME_QR_CODE = 74
    THIRD_PARTY_BLUETOOTH = 77
    WIFI_POWER_SAVE = 83
    MULTIFUNCTION_WIRELESS_KEYPAD = 84
    CUSTOM_QR_CODE = 108

    @property
    def description(self) -> str:
        return _DESCRIPTIONS.get(self, "unknown feature")


_DESCRIPTIONS = {
    LockFeature.PASSCODE: "supports passcodes",
    LockFeature.IC_CARD: "supports IC cards",
    LockFeature.FINGERPRINT: "supports fingerprints",
    LockFeature.WRISTBAND: "supports wristbands",
    LockFeature.AUTO_LOCK: "supports auto lock configuration",
    LockFeature.PASSCODE_DELETE: "passcodes can delete other passcodes",
    LockFeature.FIRMWARE_UPGRADE: "supports firmware upgrade commands",
    LockFeature.PASSCODE_MANAGEMENT: "supports passcode management",
    LockFeature.LOCK_COMMAND: "supports the lock command",
    LockFeature.PASSCODE_VISIBLE: "supports showing or hiding passcodes",
    LockFeature.GATEWAY_UNLOCK: "supports unlocking via gateway",
    LockFeature.FREEZE: "supports freezing and unfreezing",
    LockFeature.CYCLIC_PASSCODE: "supports cyclic passcodes",
    LockFeature.DOOR_SENSOR: "supports a door sensor",
    LockFeature.REMOTE_UNLOCK_CONFIG: "supports remote unlock configuration",
    LockFeature.AUDIO_MANAGEMENT: "supports enabling or disabling voice prompts",
    LockFeature.NB: "supports NB-IoT",
    LockFeature.ADMIN_PASSCODE: "supports reading the admin passcode",
    LockFeature.HOTEL_CARD: "supports the hotel card system",
    LockFeature.NO_CLOCK_CHIP: "has no clock chip",
    LockFeature.NO_BROADCAST: "does not broadcast over Bluetooth",
    LockFeature.PASSAGE_MODE: "supports passage mode",
    LockFeature.TURN_OFF_AUTO_LOCK: "supports turning off auto lock in passage mode",
    LockFeature.WIRELESS_KEYPAD: "supports wireless keypads",
    LockFeature.LIGHT_TIME: "supports light time configuration",
    LockFeature.HOTEL_CARD_BLACKLIST: "supports the hotel card blacklist",
    LockFeature.IDENTITY_CARD: "supports identity cards",
    LockFeature.TAMPER_ALERT: "supports tamper alert configuration",
    LockFeature.RESET_BUTTON: "supports reset button configuration",
    LockFeature.PRIVACY_LOCK: "supports privacy lock configuration",
    LockFeature.DEAD_LOCK: "supports dead locking",
    LockFeature.PASSAGE_MODE_EXCEPTION: "supports passage mode exceptions",
    LockFeature.CYCLIC_IC_OR_FINGERPRINT: "supports cyclic IC cards and fingerprints",
    LockFeature.PRIVACY_MODE: "supports app controlled privacy mode",
    LockFeature.LEFT_RIGHT_OPEN: "supports left or right opening configuration",
    LockFeature.FINGER_VEIN: "supports finger vein",
    LockFeature.TELINK_BLUETOOTH: "uses a Telink Bluetooth chip",
    LockFeature.NB_ACTIVATION: "supports NB activation configuration",
    LockFeature.RECOVER_CYCLIC_PASSCODE: "supports recovering cyclic passcodes",
    LockFeature.WIRELESS_KEY: "supports wireless remote keys",
    LockFeature.ACCESSORY_BATTERY: "supports reading accessory battery levels",
    LockFeature.SOUND_VOLUME_LANGUAGE: "supports volume and language settings",
    LockFeature.QR_CODE: "supports QR codes",
    LockFeature.DOOR_SENSOR_STATE: "supports door sensor state including unknown",
    LockFeature.PASSAGE_MODE_AUTO_UNLOCK: "supports passage mode auto unlock",
    LockFeature.FINGERPRINT_DISTRIBUTION: "supports fingerprint distribution",
    LockFeature.ZHONGZHENG_FINGERPRINT: "supports ZhongZheng fingerprint distribution",
    LockFeature.SHENGYUAN_FINGERPRINT: "supports ShengYuan fingerprint distribution",
    LockFeature.WIRELESS_DOOR_SENSOR: "supports wireless door sensors",
    LockFeature.DOOR_UNCLOSED_ALARM: "supports the door unclosed alarm",
    LockFeature.PROXIMITY_SENSOR: "supports proximity sensing",
    LockFeature.FACE_3D: "supports 3D face recognition",
    LockFeature.AUTO_LOCK_PAIRING: "supports fully automatic lock pairing",
    LockFeature.CPU_CARD: "supports CPU cards",
    LockFeature.WIFI: "supports WiFi",
    LockFeature.WIFI_STATIC_IP: "WiFi lock supports a static IP address",
    LockFeature.INCOMPLETE_PASSCODE: "supports incomplete passcodes",
    LockFeature.DOUBLE_AUTH: "supports double authentication",
    LockFeature.XIONGMAI_VIDEO: "supports XiongMai video intercom",
    LockFeature.ZHIAN_FACE: "supports ZhiAn face distribution",
    LockFeature.PALM_VEIN: "supports palm vein",
    LockFeature.ONE_TIME_QR_CODE: "supports one-time QR codes",
    LockFeature.THIRD_PARTY_BLUETOOTH: "supports third-party Bluetooth devices",
    LockFeature.WIFI_POWER_SAVE: "supports WiFi power saving periods",
    LockFeature.MULTIFUNCTION_WIRELESS_KEYPAD: "supports multifunction wireless keypads",
    LockFeature.CUSTOM_QR_CODE: "supports custom QR codes",
}


def has_feature(feature_value: str, feature: Union[LockFeature, int]) -> bool:
    """Return ``True`` if bit ``feature`` is set in the hex ``feature_value``.

    Empty or malformed values are treated as supporting nothing.
    """
    if not feature_value:
        return False
    try:
        value = int(feature_value, 16)
    except ValueError:
        return False
    return (value >> int(feature)) & 1 == 1
