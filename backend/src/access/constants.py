"""
Constantes de la passerelle d'accès aux documents.
"""

# Fournisseurs de messagerie grand public: jamais admis, même si un client
# enregistre une adresse sur ces domaines
BLOCKED_EMAIL_DOMAINS = frozenset({
    "gmail.com",
    "googlemail.com",
    "hotmail.com",
    "hotmail.es",
    "outlook.com",
    "outlook.es",
    "live.com",
    "live.cl",
    "msn.com",
    "yahoo.com",
    "yahoo.es",
    "ymail.com",
    "icloud.com",
    "me.com",
    "mac.com",
    "aol.com",
    "proton.me",
    "protonmail.com",
    "gmx.com",
    "mail.com",
    "zoho.com",
    "yandex.com",
})

# Routeurs des ressources protégées, sous API_V1_PREFIX (seuls chemins acceptés comme portée)
GATED_ROUTER_SEGMENTS = ("verify", "documents")

# --- Messages ---
ACCESS_DENIED_MESSAGE = "Accès non autorisé pour cette adresse email."
ACCESS_LINK_SENT_MESSAGE = "Si l'adresse est autorisée, un lien d'accès vient d'être envoyé."
SESSION_REQUIRED_MESSAGE = "Accès au document requis: demandez un lien d'accès."
SESSION_INVALID_MESSAGE = "Session d'accès invalide ou expirée."
RATE_LIMIT_MESSAGE = "Trop de demandes. Veuillez réessayer plus tard."
LINK_INVALID_MESSAGE = "Lien d'accès invalide, expiré ou déjà utilisé."

ACCESS_LINK_EMAIL_SUBJECT = "Acceso a su cotización - Comtec Industrial"
