import logging

from flask import Blueprint, request

from feedback_console.models import DuplicateIdentityError, DuplicateTitle, NotFoundError, ValidationError
from feedback_console.services import identity
from .common import console_session, parse_form, request_data, success, truthy

logger = logging.getLogger(__name__)

config_bp = Blueprint('configs', __name__, url_prefix='/configs')


def _form_state(form, role, errors):
    return {
        'form': form.to_wire(),
        'branchChoice': identity.branch_choice(form),
        'errors': errors,
        'valid': not errors,
    }


@config_bp.route('', methods=['GET'])
def list_configs():
    console = console_session()
    configs = console.configs(refresh=truthy(request.args.get('refresh')))
    return success(
        configs=[c.to_wire() for c in configs],
        count=len(configs),
        version=console.version,
    )


@config_bp.route('/version', methods=['GET'])
def configs_version():
    """Polled by the page; a changed version means the list was refreshed."""
    console = console_session()
    return success(version=console.version, submitting=console.submitting)


@config_bp.route('/title/<path:title>', methods=['GET'])
def config_by_title(title):
    console = console_session()
    configuration = console.gateway.get_config_by_title(title)
    if configuration is None:
        raise NotFoundError(f'No configuration found with title "{title}"')
    return success(configuration=configuration.to_wire())


@config_bp.route('/form', methods=['GET'])
def config_form():
    """Blank form, or an existing record prepared for editing (?id=...)."""
    console = console_session()
    config_id = request.args.get('id')
    if config_id:
        record = console.find_config(config_id)
        if record is None:
            record = next((c for c in console.configs(refresh=True) if c.id == config_id), None)
        if record is None:
            raise NotFoundError("Configuration not found")
        form = identity.load_for_editing(record, console.role)
    else:
        form = identity.new_form(console.role)
    return success(**_form_state(form, console.role, {}))


@config_bp.route('/form/edit', methods=['POST'])
def edit_form():
    """Apply one edit to posted form state and return advisory errors."""
    console = console_session()
    data = request_data()
    form = parse_form(data.get('form'))
    form = identity.apply_edit(
        form,
        console.role,
        data.get('action', 'set'),
        field=data.get('field'),
        value=data.get('value'),
        index=data.get('index'),
    )
    return success(**_form_state(form, console.role, identity.advisory_errors(form, console.role)))


@config_bp.route('', methods=['POST'])
def create_config():
    console = console_session()
    data = request_data()
    form = parse_form(data.get('form', data))
    result = console.save(form)
    if isinstance(result, DuplicateTitle):
        raise DuplicateIdentityError(result.title)
    return success("Configuration saved successfully", status=201,
                   configuration=result.configuration.to_wire())


@config_bp.route('/<config_id>', methods=['PUT'])
def update_config(config_id):
    console = console_session()
    data = request_data()
    form = parse_form(data.get('form', data))
    result = console.save(form, config_id=config_id)
    return success("Configuration saved successfully", configuration=result.configuration.to_wire())


@config_bp.route('/<config_id>', methods=['DELETE'])
def delete_config(config_id):
    console = console_session()
    if not truthy(request.args.get('confirm')):
        raise ValidationError({'confirm': 'Are you sure you want to delete this configuration?'})
    console.delete(config_id)
    return success("Configuration deleted successfully")
