from django.urls import path
from . import views

urlpatterns = [
    # Acceptance decision for a definition sent with the request
    path('api/simulate-nfa/', views.simulate_nfa, name='simulate_nfa'),
    path('api/simulate-nfa-stream/', views.simulate_nfa_stream, name='simulate_nfa_stream'),

    # Utility endpoint to check a definition loads
    path('api/check-nfa/', views.check_nfa, name='check_nfa'),

    # Simulate against the configured default definition
    path('api/simulate-default/', views.simulate_default, name='simulate_default'),
]
