"""
Django admin configuration for core app.
"""
from django.contrib import admin


# Customize admin site header and title
admin.site.site_header = "CMS Administration"
admin.site.site_title = "CMS Admin"
admin.site.index_title = "Companies, roles and navigation"
