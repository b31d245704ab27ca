import logging

from ascender.models import db, AdminActivityLog

logger = logging.getLogger(__name__)


def build_activity_description(action_type, admin_name, entity_name=None, extra_info=None):
    """Frase exibida no histórico de atividades do painel."""
    extra_info = extra_info or {}
    name = entity_name or ''

    descriptions = {
        'empresa_created': f'Empresa "{name}" cadastrada por {admin_name}',
        'empresa_updated': f'Empresa "{name}" atualizada por {admin_name}',
        'pessoa_created': f'{name} cadastrado(a) por {admin_name}',
        'competencia_created': f'Competência "{name}" criada por {admin_name}',
        'competencia_updated': f'Competência "{name}" atualizada por {admin_name}',
        'modelo_created': f'Modelo "{name}" criado por {admin_name}',
        'modelo_updated': f'Modelo "{name}" atualizado por {admin_name}',
        'modelo_published': f'Modelo "{name}" publicado por {admin_name}',
        'avaliacao_created': f'Avaliação de {name} iniciada por {admin_name}',
        'avaliacao_updated': f'Avaliação de {name} atualizada por {admin_name}',
        'avaliacao_finished': f'Avaliação de {name} finalizada por {admin_name}',
        'admin_created': f'{name} adicionado(a) como administrador por {admin_name}',
        'pdi_content_created': f'Conteúdo PDI "{name}" criado por {admin_name}',
        'pdi_content_updated': f'Conteúdo PDI "{name}" atualizado por {admin_name}',
        'pdi_content_deleted': f'Conteúdo PDI "{name}" removido por {admin_name}',
        'pdi_tag_created': f'Tag PDI "{name}" criada por {admin_name}',
        'pdi_tag_updated': f'Tag PDI "{name}" atualizada por {admin_name}',
        'pdi_tag_deleted': f'Tag PDI "{name}" removida por {admin_name}',
    }

    description = descriptions.get(action_type)
    if description is None:
        description = f'Ação realizada por {admin_name}'
    if extra_info.get('detalhes'):
        description = f"{description} ({extra_info['detalhes']})"
    return description


def log_admin_activity(admin, action_type, entity_type=None, entity_id=None, entity_name=None, extra_info=None):
    """
    Registra uma ação administrativa. Deve ser chamado depois do commit da
    operação principal: uma falha aqui é apenas registrada em log.
    """
    if admin is None:
        return None

    try:
        entry = AdminActivityLog(
            admin_id=admin.id,
            admin_name=admin.nome,
            action_type=action_type,
            description=build_activity_description(action_type, admin.nome, entity_name, extra_info),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception as e:
        db.session.rollback()
        logger.error(f"Erro ao registrar atividade {action_type}: {str(e)}")
        return None
