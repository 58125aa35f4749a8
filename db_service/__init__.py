"""
Couche de persistance : base déclarative, types de colonnes, modèles,
engine/sessions et descripteur des règles d'intégrité.
"""
