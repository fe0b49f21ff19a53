"""Text helpers shared by filters, aggregation and exports."""

from __future__ import annotations


UNKNOWN_MATERIAL = "outros"

MATERIAL_LABELS: dict[str, str] = {
    "ferro": "Ferro",
    "aluminio": "Alumínio",
    "cobre": "Cobre",
    "latinha": "Latinha",
    "panela": "Panela",
    "bloco2": "Bloco 2",
    "chapa": "Chapa",
    "perfil": "Perfil",
    "perfil pintado": "Perfil Pintado",
    "perfil natural": "Perfil Natural",
    "bloco": "Bloco",
    "metal": "Metal",
    "inox": "Inox",
    "bateria": "Bateria",
    "motor_gel": "Motor/Gel",
    "roda": "Roda",
    "papelao": "Papelão",
    "rad_metal": "Radiador Metal",
    "rad_cobre": "Radiador Cobre",
    "rad_chapa": "Radiador Chapa",
    "tela": "Tela",
    "antimonio": "Antimônio",
    "cabo_ai": "Cabo AI",
    "tubo_limpo": "Tubo Limpo",
    UNKNOWN_MATERIAL: "Outros",
}


def normalize_text(value: str | None) -> str:
    """Return a trimmed lower-case version of ``value`` ("" for None)."""
    return (value or "").strip().lower()


def material_key(material: str | None) -> str:
    """Return the grouping key of a material name."""
    return normalize_text(material) or UNKNOWN_MATERIAL


def material_label(material: str | None) -> str:
    """Return the display name of a material, falling back to the raw value."""
    key = material_key(material)
    return MATERIAL_LABELS.get(key, (material or "").strip() or MATERIAL_LABELS[UNKNOWN_MATERIAL])


def first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None
