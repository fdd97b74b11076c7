# routes/__init__.py

def register_blueprints(app):
    """
    Registra todos os blueprints da API.
    O job de recorrências é opcional: não derruba o deploy se faltar.
    """

    from .health import health_bp
    app.register_blueprint(health_bp)

    from .agendas_api import agendas_api_bp
    app.register_blueprint(agendas_api_bp)

    from .aulas_api import aulas_api_bp
    app.register_blueprint(aulas_api_bp)

    from .cadastros_api import cadastros_api_bp
    app.register_blueprint(cadastros_api_bp)

    from .admin_pessoas_api import admin_pessoas_bp
    app.register_blueprint(admin_pessoas_bp)

    from .perfil_api import perfil_api_bp
    app.register_blueprint(perfil_api_bp)

    try:
        from .admin_recorrencias_job_bp import admin_recorrencias_job_bp
        app.register_blueprint(admin_recorrencias_job_bp)
    except Exception as e:
        print(f"[warn] admin_recorrencias_job_bp não registrado: {e}", flush=True)
