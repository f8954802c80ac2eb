from django.urls import path
from .views import material_list_create, material_detail

urlpatterns = [
    path('material/', material_list_create, name='material-list-create'),
    path('material/<int:pk>/', material_detail, name='material-detail'),
]
