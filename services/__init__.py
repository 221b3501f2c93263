"""
CAPTCHA lifecycle services: store, lifecycle orchestration and background sweep
"""
