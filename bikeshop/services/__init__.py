"""
Business logic shared by the blueprints and the reminder job
"""
