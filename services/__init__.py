"""
服務層

這個 package 包含純計算邏輯與外部協作者，不負責狀態轉換：
- wait_estimator：等待時間估算
- meet_link_service：會議連結來源
"""
