"""
核心協調層

這個 package 包含所有會修改狀態的邏輯：
- 狀態機：Presence（老闆狀態）與 Meeting（進行中會議）
- Queue：等待中的敲門請求
- Router：把事件套用到狀態上並決定廣播對象
- Coordinator：唯一的寫入者，一次處理一個事件
"""
