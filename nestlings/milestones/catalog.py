from __future__ import annotations

from typing import Any

# Month ranges are relative to birth; negative months are prenatal.
DEFAULT_MILESTONES: list[dict[str, Any]] = [
    {
        "id": "prenatal",
        "label": "Prenatal Prep",
        "description": "Finish core nursery setup and hospital essentials before baby arrives.",
        "month_range": (-3, 0),
        "summary": "Lock in hospital prep, confirm support systems, and stage recovery zones before labor begins.",
    },
    {
        "id": "newborn",
        "label": "0-3 Months",
        "description": "Feeding rhythms, safe sleep and soothing for the fourth trimester.",
        "month_range": (0, 3),
        "summary": "Protect sleep, track feeds, and keep the changing and bathing kit within reach.",
    },
    {
        "id": "month3",
        "label": "3-6 Months",
        "description": "Tummy time, reaching and early play as baby gains head control.",
        "month_range": (3, 6),
        "summary": "Add play surfaces and prepare for rolling.",
    },
    {
        "id": "month6",
        "label": "6-9 Months",
        "description": "Starting solids and sitting up unassisted.",
        "month_range": (6, 9),
        "summary": "Set up the feeding station and begin baby-proofing low areas.",
    },
    {
        "id": "month9",
        "label": "9-12 Months",
        "description": "Crawling, cruising and the first convertible car seat.",
        "month_range": (9, 12),
        "summary": "Gate stairs, anchor furniture and review car seat limits.",
    },
    {
        "id": "year1",
        "label": "12-18 Months",
        "description": "First steps, self-feeding and richer play.",
        "month_range": (12, 18),
        "summary": "Swap to toddler utensils and rotate open-ended toys.",
    },
    {
        "id": "year2",
        "label": "18-24 Months",
        "description": "Language bursts and independence in daily routines.",
        "month_range": (18, 24),
        "summary": "Plan the toddler bed transition and creative play corners.",
    },
    {
        "id": "year3",
        "label": "24-36 Months",
        "description": "Potty learning, imaginative play and preschool readiness.",
        "month_range": (24, 36),
        "summary": "Support self-care routines and outdoor adventures.",
    },
]

DEFAULT_AI_CATEGORIES: list[dict[str, str]] = [
    {
        "id": "sleep-support",
        "label": "Sleep Support",
        "description": "Sleep surfaces, bedtime routines, and soothing gear to maintain safe sleep habits.",
        "best_practices": "Follow safe sleep guidelines, prioritize flat, firm surfaces and avoid loose bedding.",
    },
    {
        "id": "feeding-tools",
        "label": "Feeding Tools",
        "description": "Breastfeeding, bottle, and solids gear that supports hydration and nutrition milestones.",
        "best_practices": "Highlight paced-feeding tips and confirm nipple flow or utensil readiness.",
    },
    {
        "id": "mobility-safety",
        "label": "Mobility & Safety",
        "description": "Transportation, baby-wearing, and proofing essentials aligned to motor development windows.",
        "best_practices": "Reinforce car seat installation checks and baby-proofing before crawling.",
    },
    {
        "id": "play-development",
        "label": "Play & Development",
        "description": "Play gyms, toys, and sensory tools that match cognitive and motor development stages.",
        "best_practices": "Rotate toys and match textures to fine-motor skill progression.",
    },
    {
        "id": "care-organization",
        "label": "Care Organization",
        "description": "Diapering stations, storage, and daily care systems keeping caregivers organized.",
        "best_practices": "Prompt for stock rotation of wipes and diapers.",
    },
    {
        "id": "wellness-monitoring",
        "label": "Wellness Monitoring",
        "description": "Monitoring tech, health kits, and air-quality tools supporting proactive wellness.",
        "best_practices": "Frame monitors as caregiver aids, not medical devices.",
    },
    {
        "id": "travel-ready",
        "label": "Travel & On-the-Go",
        "description": "Strollers, carriers, and grab-and-go kits that simplify outings and travel transitions.",
        "best_practices": "Encourage pre-trip safety checks and travel-system compatibility.",
    },
]

PRODUCT_CATEGORIES: list[str] = [
    "nursing",
    "bathing",
    "feeding",
    "sleeping",
    "travel",
    "play",
    "safety",
]
