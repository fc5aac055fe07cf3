from django.urls import path
from . import views

urlpatterns = [
    path('rules/', views.rule_list, name='rule_list'),
    path('rules/bulk/', views.rule_bulk_action, name='rule_bulk_action'),
    path('rules/<str:rule_id>/', views.rule_detail, name='rule_detail'),
    path('rules/<str:rule_id>/duplicate/', views.rule_duplicate, name='rule_duplicate'),
    path('rules/<str:rule_id>/pricing/', views.rule_pricing, name='rule_pricing'),
    path('product-pricing/', views.product_pricing, name='product_pricing'),
    path('tags/', views.tag_suggestions, name='tag_suggestions'),
]
