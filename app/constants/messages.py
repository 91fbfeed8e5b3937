"""Fixed user-facing texts sent by the bot."""


class BotMessages:
    """Replies the core sends without asking the AI."""

    SESSION_IDLE_ENDED = (
        "⏰ Tu sesión de conversación ha finalizado por inactividad. "
        "Puedes escribirme nuevamente para iniciar una nueva conversación."
    )
    SESSION_ENDED_BY_OPERATOR = (
        "⏰ Tu sesión de conversación ha finalizado. "
        "Puedes escribirme nuevamente para iniciar una nueva conversación."
    )
    GENERIC_ERROR = "Lo siento, ocurrió un error. Inténtalo de nuevo."
    CONFIGURATION_ERROR = (
        "Error de configuración del bot. Por favor, contacta al administrador."
    )
    LOCATION_REJECTION = (
        "Muchas gracias por tu tiempo{name}. Actualmente, no estamos enfocados en tu "
        "zona y, por ahora, no podremos seguir adelante con el proceso. Apreciamos "
        "mucho tu interés y esperamos poder colaborar más adelante. "
        "¡Que tengas un gran día!"
    )
    HANDOFF_NOTICE = (
        "Te estoy comunicando con un asesor de nuestro equipo. "
        "En breve te atenderá por este mismo chat."
    )


class PromptNotes:
    """Fragments appended to the system prompt for a single AI call."""

    FIRST_CONTACT_DISCLAIMER = (
        "\n\n⚠️ IMPORTANTE: Este es el primer mensaje de la conversación. Debes "
        "comenzar tu respuesta con el siguiente aviso:\n\n"
        '"🤖 *Hola, soy un bot en periodo de pruebas.* Estoy aquí para ayudarte con '
        'información sobre nuestros servicios. Ayudanos a mejorar nuestro servicio"'
        "\n\nDespués de este aviso, procede normalmente con tu respuesta."
    )
    VALID_LOCATION = (
        "\n\nNOTA: El usuario ha mencionado una ubicación válida: {locations}. "
        "Esta ubicación está dentro del área metropolitana de CDMX y es operable "
        "para nuestros servicios."
    )
