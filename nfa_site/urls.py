from django.urls import include, path

urlpatterns = [
    path('', include('nfa_simulator.urls')),
]
