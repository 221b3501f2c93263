"""
Utility helpers: CAPTCHA text/image generation and key hashing
"""
