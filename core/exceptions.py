"""
自定義異常類別

集中管理所有業務邏輯異常。
WebSocket 沒有 request/response，所以 Router 捕捉後只記 log、丟棄事件；
HTTP 層則轉成對應的 status code。
"""


class KnockDoorException(Exception):
    """所有業務異常的基類"""
    pass


# ============ 敲門請求相關異常 ============

class InvalidKnock(KnockDoorException):
    """敲門請求缺少必要欄位（例如空的 id）"""
    pass


class KnockAlreadyQueued(KnockDoorException):
    """同一個 id 已經在佇列裡"""
    def __init__(self, knock_id):
        self.knock_id = knock_id
        super().__init__(f"Knock {knock_id} is already queued")


class KnockInMeeting(KnockDoorException):
    """這個 id 正在會議中，不能再排隊"""
    def __init__(self, knock_id):
        self.knock_id = knock_id
        super().__init__(f"Knock {knock_id} is already in the active meeting")


# ============ 狀態轉換異常 ============

class InvalidStateTransition(KnockDoorException):
    """非法的狀態轉換（例如 client 想直接設定 in-meeting）"""
    pass


# ============ 連線異常 ============

class ChannelClosed(KnockDoorException):
    """連線已關閉或送不出去（outbox 已滿），Registry 會移除它"""
    pass


# ============ 外部服務異常 ============

class MeetLinkUnavailable(KnockDoorException):
    """會議連結來源失敗或沒有設定"""
    pass
