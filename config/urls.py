"""
Root URLconf. The billing services are called in-process by the request
layer; only the admin is routed here.
"""
from django.contrib import admin
from django.urls import path

urlpatterns = [
    path('admin/', admin.site.urls),
]
