"""
API 層

- websocket：老闆與員工的即時雙向通道（/ws）
- meetings：會議連結與狀態快照（/api/...）
"""
