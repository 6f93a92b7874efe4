"""Fixed guest-facing sentences, one per supported language.

UNKNOWN_FACT_REPLY is quoted verbatim in the system prompt and matched exactly by the
escalation policy, so it must only ever be referenced from here.
"""

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "hr", "de")

UNKNOWN_FACT_REPLY = {
    "en": "I don't have that information. I'll forward your question to the host.",
    "hr": "Nemam tu informaciju. Proslijedit ću vaše pitanje domaćinu.",
    "de": "Diese Information habe ich nicht. Ich leite Ihre Frage an den Gastgeber weiter.",
}

FORWARDED_REPLY = {
    "en": "Thanks! I've forwarded your question to the host, who will get back to you shortly.",
    "hr": "Hvala! Proslijedio sam vaše pitanje domaćinu, koji će vam se uskoro javiti.",
    "de": "Danke! Ich habe Ihre Frage an den Gastgeber weitergeleitet, der sich in Kürze bei Ihnen meldet.",
}

TECHNICAL_DIFFICULTY_REPLY = {
    "en": "Sorry, I'm having technical difficulties right now. Please try again in a few minutes.",
    "hr": "Ispričavamo se, trenutno imam tehničkih poteškoća. Pokušajte ponovno za nekoliko minuta.",
    "de": "Entschuldigung, ich habe gerade technische Probleme. Bitte versuchen Sie es in ein paar Minuten erneut.",
}

MISSING_CODE_REPLY = {
    "en": "Please start your message with your property code, for example: ANA123: What time is check-in?",
    "hr": "Molimo započnite poruku kodom smještaja, na primjer: ANA123: U koliko sati je prijava?",
    "de": "Bitte beginnen Sie Ihre Nachricht mit dem Code Ihrer Unterkunft, zum Beispiel: ANA123: Wann ist der Check-in?",
}

UNKNOWN_CODE_REPLY = {
    "en": "Unknown property code: {code}. Please check the code you received from your host.",
    "hr": "Nepoznat kod smještaja: {code}. Provjerite kod koji ste dobili od domaćina.",
    "de": "Unbekannter Unterkunftscode: {code}. Bitte prüfen Sie den Code, den Sie vom Gastgeber erhalten haben.",
}

NO_PLAN_REPLY = {
    "en": "The assistant for this property is currently inactive. Please contact your host directly.",
    "hr": "Asistent za ovaj smještaj trenutno nije aktivan. Molimo kontaktirajte domaćina izravno.",
    "de": "Der Assistent für diese Unterkunft ist derzeit nicht aktiv. Bitte wenden Sie sich direkt an den Gastgeber.",
}

LIMIT_REACHED_REPLY = {
    "en": "The assistant for this property has reached its monthly message limit. Please contact your host directly.",
    "hr": "Asistent za ovaj smještaj dosegnuo je mjesečni limit poruka. Molimo kontaktirajte domaćina izravno.",
    "de": "Der Assistent für diese Unterkunft hat sein monatliches Nachrichtenlimit erreicht. Bitte wenden Sie sich direkt an den Gastgeber.",
}

UNAVAILABLE_REPLY = {
    "en": "We can't process your message right now. Please try again later.",
    "hr": "Trenutno ne možemo obraditi vašu poruku. Pokušajte ponovno kasnije.",
    "de": "Wir können Ihre Nachricht gerade nicht verarbeiten. Bitte versuchen Sie es später erneut.",
}


def phrase(table: dict[str, str], language: str, **values: str) -> str:
    """Pick the sentence for `language`, falling back to English."""
    text = table.get(language) or table[DEFAULT_LANGUAGE]
    return text.format(**values) if values else text
