# Overview: Role-adaptive display tables (titles, actions, filters, messages) and formatting.

"""
Role-Adaptive Presentation Config

Pure data keyed by (Role, Domain) enums. No logic beyond table lookup and
number formatting. Every role must have an entry in every table; the module
asserts that at import time so a new role cannot silently fall through.

Amounts are stored as plain integers (XOF) and only formatted here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from flask import current_app, has_app_context

from ..permissions import Role


class Domain(str, Enum):
    STORES = "stores"
    INVENTORY = "inventory"
    SUPPLIERS = "suppliers"
    RETURNS = "returns"
    REPORTS = "reports"
    FINANCE = "finance"
    GAMIFICATION = "gamification"


# =============================================================================
# TITLES, QUICK ACTIONS, FILTERS
# =============================================================================

_PERIOD_FILTER_LABELS = {
    "today": "Aujourd'hui",
    "week": "Cette semaine",
    "month": "Ce mois",
    "quarter": "Ce trimestre",
    "year": "Cette année",
    "7days": "7 derniers jours",
    "30days": "30 derniers jours",
    "30d": "30 derniers jours",
    "90days": "90 derniers jours",
    "12months": "12 derniers mois",
    "1month": "Dernier mois",
    "3months": "3 derniers mois",
    "6months": "6 derniers mois",
    "1year": "Dernière année",
}


def _period_filter(*tokens: str) -> dict:
    return {
        "key": "period",
        "label": "Période",
        "options": [{"value": t, "label": _PERIOD_FILTER_LABELS[t]} for t in tokens],
    }


_RETURN_STATUS_FILTER = {
    "key": "status",
    "label": "Statut",
    "options": [
        {"value": "all", "label": "Tous"},
        {"value": "pending", "label": "En attente"},
        {"value": "approved", "label": "Approuvés"},
        {"value": "rejected", "label": "Rejetés"},
    ],
}

_SESSION_STATUS_FILTER = {
    "key": "status",
    "label": "Statut",
    "options": [
        {"value": "all", "label": "Toutes"},
        {"value": "active", "label": "En cours"},
        {"value": "completed", "label": "Terminées"},
        {"value": "cancelled", "label": "Annulées"},
    ],
}

_STORE_STATUS_FILTER = {
    "key": "status",
    "label": "Statut",
    "options": [
        {"value": "all", "label": "Tous"},
        {"value": "active", "label": "Actifs"},
        {"value": "inactive", "label": "Inactifs"},
    ],
}

_SUPPLIER_STATUS_FILTER = {
    "key": "status",
    "label": "Statut",
    "options": [
        {"value": "all", "label": "Tous"},
        {"value": "active", "label": "Actifs"},
        {"value": "inactive", "label": "Inactifs"},
    ],
}

_STORE_FILTER = {"key": "store", "label": "Magasin", "options": "stores"}


# {store_label} is replaced by "N magasin(s)" from the caller's scope
ROLE_CONTENT = {
    Domain.STORES: {
        Role.SELLER: {
            "title": "Mes Magasins - {store_label}",
            "subtitle": "Accédez aux informations de vos magasins assignés",
            "quick_actions": ["Voir mes magasins", "Statistiques", "Contact", "Historique"],
            "filters": [],
        },
        Role.MANAGER: {
            "title": "Gestion des Magasins - {store_label}",
            "subtitle": "Supervisez vos magasins et gérez votre équipe",
            "quick_actions": ["Gestion équipe", "Rapports", "Configuration"],
            "filters": [_STORE_STATUS_FILTER],
        },
        Role.ADMIN: {
            "title": "Gestion Globale des Magasins",
            "subtitle": "Vue d'ensemble de tous les magasins du système",
            "quick_actions": ["Nouveau magasin", "Configuration", "Rapports globaux", "Audit"],
            "filters": [_STORE_STATUS_FILTER],
        },
    },
    Domain.INVENTORY: {
        Role.SELLER: {
            "title": "Inventaires - {store_label}",
            "subtitle": "Consultez les inventaires de vos magasins",
            "quick_actions": ["Consulter", "Exporter"],
            "filters": [_SESSION_STATUS_FILTER],
        },
        Role.MANAGER: {
            "title": "Gestion des Inventaires - {store_label}",
            "subtitle": "Planifiez et suivez les comptages de vos magasins",
            "quick_actions": ["Nouvel inventaire", "Ajustements", "Exporter", "Statistiques"],
            "filters": [_SESSION_STATUS_FILTER],
        },
        Role.ADMIN: {
            "title": "Inventaires Globaux",
            "subtitle": "Vue d'ensemble des inventaires de tous les magasins",
            "quick_actions": ["Nouvel inventaire", "Ajustements", "Exporter", "Audit"],
            "filters": [_STORE_FILTER, _SESSION_STATUS_FILTER],
        },
    },
    Domain.SUPPLIERS: {
        Role.SELLER: {
            "title": "Fournisseurs",
            "subtitle": "Consultez les coordonnées de nos partenaires",
            "quick_actions": [],
            "filters": [],
        },
        Role.MANAGER: {
            "title": "Réseau Fournisseurs",
            "subtitle": "Gérez vos partenaires commerciaux",
            "quick_actions": ["Ajouter un fournisseur", "Exporter CSV"],
            "filters": [_SUPPLIER_STATUS_FILTER],
        },
        Role.ADMIN: {
            "title": "Gestion des Fournisseurs",
            "subtitle": "Vue d'ensemble de tous les fournisseurs du système",
            "quick_actions": ["Ajouter un fournisseur", "Exporter CSV", "Exporter JSON"],
            "filters": [_SUPPLIER_STATUS_FILTER],
        },
    },
    Domain.RETURNS: {
        Role.SELLER: {
            "title": "Retours & Échanges - {store_label}",
            "subtitle": "Traitez les retours de vos ventes rapidement et efficacement",
            "quick_actions": ["Nouveau retour", "Historique", "Remboursements", "Mes retours"],
            "filters": [_period_filter("today", "week", "month", "30d"), _RETURN_STATUS_FILTER],
        },
        Role.MANAGER: {
            "title": "Gestion des Retours - {store_label}",
            "subtitle": "Supervisez les retours de votre équipe et validez les opérations importantes",
            "quick_actions": ["Nouveau retour", "Validation", "Rapports", "Remboursements"],
            "filters": [_period_filter("week", "month", "quarter", "year"), _RETURN_STATUS_FILTER],
        },
        Role.ADMIN: {
            "title": "Gestion Globale des Retours",
            "subtitle": "Vue d'ensemble de tous les retours du système et configuration des politiques",
            "quick_actions": ["Nouveau retour", "Configuration", "Rapports globaux", "Audit"],
            "filters": [_STORE_FILTER, _period_filter("month", "quarter", "year")],
        },
    },
    Domain.REPORTS: {
        Role.SELLER: {
            "title": "Mes Rapports",
            "subtitle": "Analyse de vos performances individuelles",
            "quick_actions": ["Mes performances", "Mes objectifs"],
            "filters": [_period_filter("1month", "3months", "6months", "1year")],
        },
        Role.MANAGER: {
            "title": "Rapports Magasin",
            "subtitle": "Analyse des performances par magasin et équipe",
            "quick_actions": ["Performance équipe", "Exporter"],
            "filters": [_STORE_FILTER, _period_filter("1month", "3months", "6months", "1year")],
        },
        Role.ADMIN: {
            "title": "Rapports Globaux",
            "subtitle": "Analyse des performances globales et par magasin",
            "quick_actions": ["Comparaisons", "Exporter"],
            "filters": [_STORE_FILTER, _period_filter("1month", "3months", "6months", "1year")],
        },
    },
    Domain.FINANCE: {
        Role.SELLER: {
            "title": "Mes Finances",
            "subtitle": "Analyse de vos performances financières",
            "quick_actions": [],
            "filters": [_period_filter("1month", "3months", "6months", "1year")],
        },
        Role.MANAGER: {
            "title": "Gestion Financière Magasin",
            "subtitle": "Analyse des finances par magasin et équipe",
            "quick_actions": ["Nouvelle dépense", "Exporter"],
            "filters": [_STORE_FILTER, _period_filter("1month", "3months", "6months", "1year")],
        },
        Role.ADMIN: {
            "title": "Gestion Financière Globale",
            "subtitle": "Analyse des finances globales et par magasin",
            "quick_actions": ["Nouvelle dépense", "Exporter", "Audit"],
            "filters": [_STORE_FILTER, _period_filter("1month", "3months", "6months", "1year")],
        },
    },
    Domain.GAMIFICATION: {
        Role.SELLER: {
            "title": "Mes Points",
            "subtitle": "Suivez votre progression et vos badges",
            "quick_actions": ["Mes badges", "Classement"],
            "filters": [],
        },
        Role.MANAGER: {
            "title": "Motivation Équipe",
            "subtitle": "Récompensez les performances de votre équipe",
            "quick_actions": ["Attribuer des points", "Classement"],
            "filters": [],
        },
        Role.ADMIN: {
            "title": "Gamification Globale",
            "subtitle": "Configuration des points, niveaux et badges",
            "quick_actions": ["Attribuer des points", "Classement", "Configuration"],
            "filters": [],
        },
    },
}


# =============================================================================
# ROLE-PHRASED MESSAGES
# =============================================================================

MESSAGES = {
    Domain.STORES: {
        Role.ADMIN: {
            "create_success": 'Le magasin "{name}" a été créé avec succès.',
            "update_success": 'Le magasin "{name}" a été modifié avec succès.',
            "delete_success": "Le magasin a été supprimé avec succès.",
            "activate_success": "{name} a été activé.",
            "deactivate_success": "{name} a été désactivé.",
            "no_access": "Accès administrateur requis pour cette opération sur les magasins.",
        },
        Role.MANAGER: {
            "create_success": 'Le magasin "{name}" a été créé avec succès.',
            "update_success": 'Le magasin "{name}" a été modifié avec succès.',
            "delete_success": "Le magasin a été supprimé avec succès.",
            "activate_success": "{name} a été activé.",
            "deactivate_success": "{name} a été désactivé.",
            "no_access": "Vous ne pouvez gérer que vos magasins assignés.",
        },
        Role.SELLER: {
            "create_success": 'Le magasin "{name}" a été créé avec succès.',
            "update_success": 'Le magasin "{name}" a été modifié avec succès.',
            "delete_success": "Le magasin a été supprimé avec succès.",
            "activate_success": "{name} a été activé.",
            "deactivate_success": "{name} a été désactivé.",
            "no_access": "Accès en lecture seule aux magasins.",
        },
    },
    Domain.INVENTORY: {
        Role.ADMIN: {
            "start_success": "Session d'inventaire créée avec audit trail activé.",
            "update_success": "Comptage mis à jour. Changements enregistrés.",
            "complete_success": "Inventaire finalisé avec rapport complet.",
            "cancel_success": "Session d'inventaire annulée et tracée.",
            "adjust_success": "Stock ajusté avec traçabilité complète.",
            "no_access": "Accès administrateur requis pour l'inventaire.",
            "empty_state": "Aucune session d'inventaire. Commencez par créer votre premier inventaire.",
        },
        Role.MANAGER: {
            "start_success": "Nouvelle session d'inventaire démarrée pour votre magasin.",
            "update_success": "Comptage actualisé pour votre inventaire.",
            "complete_success": "Inventaire terminé avec succès.",
            "cancel_success": "Session d'inventaire annulée.",
            "adjust_success": "Stock ajusté selon les comptages.",
            "no_access": "Permissions de gestion d'inventaire requises.",
            "empty_state": "Aucune session d'inventaire disponible. Créez votre premier inventaire.",
        },
        Role.SELLER: {
            "start_success": "Session d'inventaire enregistrée pour consultation.",
            "update_success": "Comptage mis à jour pour consultation.",
            "complete_success": "Inventaire marqué comme terminé.",
            "cancel_success": "Session d'inventaire annulée.",
            "adjust_success": "Ajustement de stock effectué.",
            "no_access": "Accès en lecture seule autorisé pour l'inventaire.",
            "empty_state": "Aucune session d'inventaire à consulter. Contactez votre manager.",
        },
    },
    Domain.SUPPLIERS: {
        Role.ADMIN: {
            "create_success": "Fournisseur créé avec succès. Audit trail activé.",
            "update_success": "Fournisseur modifié avec succès. Changements enregistrés.",
            "delete_success": "Fournisseur supprimé définitivement.",
            "no_access": "Accès administrateur requis.",
            "empty_state": "Aucun fournisseur enregistré. Commencez par ajouter vos partenaires commerciaux.",
        },
        Role.MANAGER: {
            "create_success": "Fournisseur ajouté à votre réseau commercial.",
            "update_success": "Informations fournisseur mises à jour.",
            "delete_success": "Fournisseur retiré de votre réseau.",
            "no_access": "Permissions de gestion requises.",
            "empty_state": "Aucun fournisseur disponible. Ajoutez vos premiers partenaires.",
        },
        Role.SELLER: {
            "create_success": "Fournisseur enregistré pour consultation.",
            "update_success": "Détails fournisseur actualisés.",
            "delete_success": "Fournisseur retiré de la liste.",
            "no_access": "Accès en lecture seule autorisé.",
            "empty_state": "Aucun fournisseur à consulter. Contactez votre manager.",
        },
    },
    Domain.RETURNS: {
        Role.ADMIN: {
            "create_success": "Retour approuvé avec succès",
            "create_pending": "Retour créé et en attente d'approbation",
            "approve_success": "Le retour a été approuvé avec succès.",
            "reject_success": "Le retour a été rejeté avec succès.",
            "no_access": "Accès administrateur requis pour les retours.",
        },
        Role.MANAGER: {
            "create_success": "Retour approuvé avec succès",
            "create_pending": "Retour créé et en attente d'approbation",
            "approve_success": "Le retour a été approuvé avec succès.",
            "reject_success": "Le retour a été rejeté avec succès.",
            "no_access": "Vous ne pouvez valider que les retours de vos magasins.",
        },
        Role.SELLER: {
            "create_success": "Retour enregistré avec succès",
            "create_pending": "Retour enregistré avec succès",
            "approve_success": "Le retour a été approuvé avec succès.",
            "reject_success": "Le retour a été rejeté avec succès.",
            "no_access": "Vous n'avez pas la permission de modifier le statut d'un retour",
        },
    },
    Domain.REPORTS: {
        Role.ADMIN: {
            "no_data": "Aucune donnée disponible pour cette période",
            "no_access": "Accès administrateur requis pour ces rapports.",
        },
        Role.MANAGER: {
            "no_data": "Aucune donnée disponible pour vos magasins",
            "no_access": "Vous n'avez pas accès à ces rapports.",
        },
        Role.SELLER: {
            "no_data": "Aucune donnée personnelle disponible",
            "no_access": "Vous n'avez accès qu'à vos rapports personnels.",
        },
    },
    Domain.FINANCE: {
        Role.ADMIN: {
            "add_expense_success": "Dépense ajoutée au système",
            "delete_expense_success": "Dépense supprimée du système",
            "no_data": "Aucune donnée financière disponible pour cette période",
            "no_access": "Permission refusée pour cette opération financière.",
        },
        Role.MANAGER: {
            "add_expense_success": "Dépense ajoutée à votre magasin",
            "delete_expense_success": "Dépense supprimée de votre magasin",
            "no_data": "Aucune donnée financière disponible pour vos magasins",
            "no_access": "Permission refusée pour supprimer des dépenses",
        },
        Role.SELLER: {
            "add_expense_success": "Dépense personnelle ajoutée",
            "delete_expense_success": "Dépense personnelle supprimée",
            "no_data": "Aucune donnée financière personnelle disponible",
            "no_access": "Permission refusée pour ajouter des dépenses",
        },
    },
    Domain.GAMIFICATION: {
        Role.ADMIN: {
            "award_success": "{points} points attribués.",
            "level_up": "Niveau {level} atteint : {level_name} !",
            "no_access": "Accès administrateur requis pour la gamification.",
        },
        Role.MANAGER: {
            "award_success": "{points} points attribués à votre vendeur.",
            "level_up": "Niveau {level} atteint : {level_name} !",
            "no_access": "Vous ne pouvez attribuer des points qu'à votre équipe.",
        },
        Role.SELLER: {
            "award_success": "{points} points gagnés !",
            "level_up": "Félicitations ! Niveau {level} atteint : {level_name} !",
            "no_access": "Vous ne pouvez consulter que votre propre progression.",
        },
    },
}


# =============================================================================
# RETURNS POLICY AND REPORT TYPES
# =============================================================================

@dataclass(frozen=True)
class ReturnPolicy:
    max_amount: int | None
    requires_approval: bool

    def allows(self, amount) -> bool:
        return self.max_amount is None or amount <= self.max_amount

    def to_dict(self) -> dict:
        return {"max_amount": self.max_amount, "requires_approval": self.requires_approval}


_DEFAULT_RETURN_CAPS = {
    Role.SELLER: 50_000,
    Role.MANAGER: 200_000,
    Role.ADMIN: None,
}

RETURN_REQUIRES_APPROVAL = {
    Role.SELLER: False,
    Role.MANAGER: True,
    Role.ADMIN: False,
}


def return_policy(role: Role) -> ReturnPolicy:
    """Cap from RETURN_MAX_AMOUNTS config (when an app is active), approval from the table."""
    cap = _DEFAULT_RETURN_CAPS[role]
    if has_app_context():
        caps = current_app.config.get("RETURN_MAX_AMOUNTS") or {}
        cap = caps.get(role.value, cap)
    return ReturnPolicy(max_amount=cap, requires_approval=RETURN_REQUIRES_APPROVAL[role])


REPORT_TYPES = {
    Role.ADMIN: [
        {"id": "overview", "label": "Vue d'ensemble"},
        {"id": "products", "label": "Performances produits"},
        {"id": "sellers", "label": "Performance vendeurs"},
        {"id": "stores", "label": "Performance magasins"},
        {"id": "growth", "label": "Croissance & tendances"},
        {"id": "comparison", "label": "Comparaisons"},
    ],
    Role.MANAGER: [
        {"id": "overview", "label": "Vue d'ensemble"},
        {"id": "products", "label": "Performances produits"},
        {"id": "sellers", "label": "Performance vendeurs"},
        {"id": "team", "label": "Performance équipe"},
        {"id": "growth", "label": "Croissance magasin"},
    ],
    Role.SELLER: [
        {"id": "overview", "label": "Vue d'ensemble"},
        {"id": "personal", "label": "Mes performances"},
        {"id": "goals", "label": "Mes objectifs"},
    ],
}


for _table in (ROLE_CONTENT, MESSAGES):
    for _domain, _by_role in _table.items():
        assert set(_by_role) == set(Role), f"missing role entries for {_domain}"
assert set(REPORT_TYPES) == set(Role)
assert set(RETURN_REQUIRES_APPROVAL) == set(Role)


# =============================================================================
# LOOKUPS
# =============================================================================

def store_label(store_count: int) -> str:
    return f"{store_count} magasin{'s' if store_count > 1 else ''}"


def role_content(ctx, domain: Domain) -> dict:
    """Title, subtitle, quick actions and filters for the caller's role."""
    content = ROLE_CONTENT[domain][ctx.role]
    data = {
        "title": content["title"].format(store_label=store_label(ctx.store_count)),
        "subtitle": content["subtitle"],
        "quick_actions": list(content["quick_actions"]),
        "filters": [dict(f) for f in content["filters"]],
    }
    if domain is Domain.RETURNS:
        data["policy"] = return_policy(ctx.role).to_dict()
    if domain is Domain.REPORTS:
        data["report_types"] = report_types(ctx.role)
    return data


def message(role: Role, domain: Domain, key: str, **values) -> str:
    text = MESSAGES[domain][role][key]
    return text.format(**values) if values else text


def no_access_message(role: Role, domain: Domain) -> str:
    return MESSAGES[domain][role]["no_access"]


def report_types(role: Role) -> list[dict]:
    return [dict(t) for t in REPORT_TYPES[role]]


# =============================================================================
# FORMATTING
# =============================================================================

def format_currency(amount, currency: str | None = None) -> str:
    """
    Whole-unit amount with space thousands separators.

    format_currency(150000) -> "150 000 XOF"
    """
    if currency is None:
        currency = current_app.config.get("CURRENCY_CODE", "XOF") if has_app_context() else "XOF"
    if amount is None:
        amount = 0
    value = int(round(amount))
    sign = "-" if value < 0 else ""
    grouped = f"{abs(value):,}".replace(",", " ")
    return f"{sign}{grouped} {currency}"


def format_percentage(value, digits: int = 1) -> str:
    """Signed percentage: 12.5 -> "+12.5%", -3 -> "-3.0%"."""
    if value is None:
        value = 0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{digits}f}%"
