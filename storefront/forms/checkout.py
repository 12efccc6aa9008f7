"""Checkout and promotion payload forms."""

from flask_wtf import FlaskForm
from wtforms import Form, StringField, FloatField, IntegerField, SelectField, DateTimeField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, ValidationError
from storefront.models.promotion import DISCOUNT_TYPES, PERCENT


class ShippingInfoForm(Form):
    """Shipping block of an order request, fed from a dict."""
    name = StringField('Name', validators=[
        DataRequired(message='Name is required'),
        Length(max=100)
    ])
    phone = StringField('Phone', validators=[
        DataRequired(message='Phone is required'),
        Length(max=20)
    ])
    address = StringField('Address', validators=[
        DataRequired(message='Address is required'),
        Length(max=500)
    ])
    city = StringField('City', validators=[Optional(), Length(max=100)])
    country = StringField('Country', validators=[Optional(), Length(max=100)])


class PromotionForm(FlaskForm):
    """Admin payload for creating a promotion. Reads the JSON body."""
    
    class Meta:
        csrf = False
    
    code = StringField('Code', validators=[
        DataRequired(message='Code is required'),
        Length(max=50)
    ])
    description = StringField('Description', validators=[Optional(), Length(max=255)])
    discount_type = SelectField('Type', choices=[(t, t) for t in DISCOUNT_TYPES], validators=[
        DataRequired(message='Discount type is required')
    ])
    discount_value = FloatField('Discount', validators=[
        DataRequired(message='Discount value is required'),
        NumberRange(min=0, message='Discount must be positive')
    ])
    min_order_value = FloatField('Minimum order value', validators=[
        Optional(),
        NumberRange(min=0)
    ])
    user_id = IntegerField('Owner', validators=[Optional()])
    expires_at = DateTimeField('Expires at', format='%Y-%m-%dT%H:%M:%S', validators=[
        DataRequired(message='Expiry is required (YYYY-MM-DDTHH:MM:SS)')
    ])
    
    def validate_discount_value(self, field):
        """Percent promotions cannot exceed 100."""
        if self.discount_type.data == PERCENT and field.data is not None and field.data > 100:
            raise ValidationError('Percent discount cannot exceed 100')
