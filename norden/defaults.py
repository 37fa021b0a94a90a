# Built-in landing page copy and images, used until the admin replaces them.

DEFAULT_HERO_IMAGE = "images/hero.svg"

DEFAULT_CAROUSEL_IMAGES = [
    "images/carousel-1.svg",
    "images/carousel-2.svg",
    "images/carousel-3.svg",
    "images/carousel-4.svg",
    "images/carousel-5.svg",
]

# (key, label, section, value)
DEFAULT_CONTENT = [
    ("hero_title", "Título principal", "hero", "NORDEN"),
    ("hero_subtitle", "Subtítulo", "hero", "Carpas Exclusivas para Momentos Inolvidables"),
    ("slogan", "Frase del carrusel", "carousel", "Una carpa que se adapta a cualquier Entorno"),
    ("quote_intro", "Texto del presupuesto", "info",
     "¡Comentanos sobre tu evento y armamos un presupuesto a tu medida!"),
    ("capacity", "Capacidad", "info", "Capacidad adaptable entre 60 a 400 personas"),
    ("spec_materials", "Materiales", "info", "Materiales de alta resistencia y durabilidad"),
    ("spec_size", "Medidas", "info", "Modulable de 6 metros x 12 metros. escalables"),
    ("spec_terrain", "Terreno", "info", "Diseño adaptable a cualquier terreno y clima"),
    ("footer_about", "Descripción del pie", "footer",
     "Especialistas Carpas para eventos sociales y corporativos de alto nivel."),
    ("contact_instagram", "Instagram", "footer", "@nordenzelt"),
    ("contact_email", "Email de contacto", "footer", "contacto@nordenzelt.com"),
    ("location", "Ubicación", "footer", "Buenos Aires, Argentina"),
    ("coverage", "Cobertura", "footer", "Servicio de cobertura nacional"),
]

INCLUDED_SERVICES = ["Traslado al punto de armado", "Armado y Desarmado profesional"]
OPTIONAL_SERVICES = ["Ambientación", "Sonido y Técnica", "Livings y Sillas", "Pista de baile"]


def default_content_values() -> dict[str, str]:
    return {key: value for key, _label, _section, value in DEFAULT_CONTENT}
