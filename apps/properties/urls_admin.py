from django.urls import path

from . import views

app_name = "properties_admin"

urlpatterns = [
    path("buildings/<uuid:pk>/overview/", views.building_overview, name="building_overview"),
    path("buildings/<uuid:pk>/vacancy-chart/", views.building_vacancy_chart, name="building_vacancy_chart"),
    path("buildings/<uuid:pk>/occupancy-history/", views.building_occupancy_history, name="building_occupancy_history"),
]
