"""
Menu serializers.
"""
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers


class MenuNodeSerializer(serializers.Serializer):
    """Serializer for flat MenuNode records."""

    id = serializers.IntegerField()
    parent_id = serializers.IntegerField()
    name = serializers.CharField()
    url = serializers.CharField()
    icon = serializers.CharField(allow_null=True)
    order = serializers.IntegerField()
    permission_key = serializers.CharField(allow_null=True)


class MenuTreeNodeSerializer(MenuNodeSerializer):
    """Serializer for MenuTreeNode records, children included recursively."""

    children = serializers.SerializerMethodField()

    @extend_schema_field(serializers.ListField(child=serializers.DictField()))
    def get_children(self, obj):
        return MenuTreeNodeSerializer(obj.children, many=True).data
