"""
功能模組

處理流程的各個階段：驗證、EXIF 讀取、尺寸規劃、方向轉換、編碼
"""
