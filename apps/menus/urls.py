"""
Menu API URLs.
"""
from django.urls import path
from apps.menus.views import MenuView, MenuTreeView

app_name = 'menus'

urlpatterns = [
    path('menu', MenuView.as_view(), name='menu'),
    path('menu/tree', MenuTreeView.as_view(), name='menu-tree'),
]
