from django.urls import path

from . import views

urlpatterns = [
    # Filtered choices for one category, given the session selection
    path(
        "components/<str:category>/",
        views.component_choices,
        name="component_choices",
    ),
    path(
        "components/<str:category>/<str:component_id>/resolve/",
        views.resolve_option,
        name="resolve_option",
    ),
    # Reducer actions (SELECT, REMOVE, RESET, SET_ALL, IMPORT)
    path("selection/", views.update_selection, name="update_selection"),
    path(
        "peripherals/toggle/",
        views.toggle_peripheral_view,
        name="toggle_peripheral",
    ),
    path("summary/", views.build_summary, name="build_summary"),
    path("finder/", views.recommend_builds, name="recommend_builds"),
]
